"""
Contract - Sessions over registered contracts, event filters and log decoding.

All node traffic goes through etherbind.rpc.JsonRpcClient; the ABI work is
done by etherbind.abi.
"""
