import ssl

from mqttpal.conduit.socket_conduit import SocketConduit


class TLSConduit(SocketConduit):
    """
    A conduit over an established TLS session.

    A readable socket may hold several TLS records or only part of one, so socket readiness
    says little about what is left to read. The conduit is quiescent only when a read
    reports nothing ready and the session has no decrypted bytes buffered.
    """
    def __init__(self, sock: ssl.SSLSocket):
        super().__init__(sock)

    def _write_some(self, view) -> int:
        try:
            return self.sock.send(view)
        except (ssl.SSLWantWriteError, ssl.SSLWantReadError):
            return 0

    def _read_some(self, view):
        try:
            return self.sock.recv_into(view)
        except (ssl.SSLWantReadError, ssl.SSLWantWriteError):
            return None

    def _quiescent(self) -> bool:
        return self.sock.pending() == 0

    @property
    def peer_certificate(self):
        """ the verified certificate presented by the peer """
        return self.sock.getpeercert()
