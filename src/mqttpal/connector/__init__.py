"""
A connector knows how to reach an endpoint and hand back an open conduit to it.
The plain socket connector and the TLS connector are the two backends; which one is used
is decided when the connector is built, never per call.
"""
