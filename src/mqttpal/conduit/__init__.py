"""
A conduit is one open, duplex byte channel to a peer: the handle the protocol engine
sends and receives through. Conduits come from connectors and are closed exactly once.
"""
