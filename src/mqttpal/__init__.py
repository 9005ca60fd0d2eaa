"""
Transport for an MQTT client: opens plain or TLS connections and moves bytes over them
for the protocol engine.

- Conduit: one open, duplex connection. send() delivers all the bytes or raises,
  recv() drains what is ready without waiting for more, close() releases it once.
- Connector: reaches an endpoint and opens conduits to it. SocketConnector gives plain,
  non-blocking sockets; TLSConnector adds a handshake bounded by a timeout and requires
  the peer certificate to verify against a trust store.
- TLSContext: the TLS settings and trust store, created once and shared by connectors.
- transport: the connect/send/recv/close functions the protocol engine calls.

Connectors can be arranged as a chain, with outer connectors wrapping inner connectors.
CloseOnErrorConnector wraps a connector and disconnects it when sending or receiving fails.

Threading: nothing is locked. One thread may send while another receives on the same conduit.
Closing a conduit while another thread is using it is not supported.
"""
