import socket

from mqttpal.conduit import base


class SocketConduit(base.StreamConduit):
    """
    A conduit that provides communication via a plain socket.
    :param sock The open, connected socket. It is switched to non-blocking mode.
    """
    def __init__(self, sock: socket.socket):
        super().__init__()
        self.sock = sock
        sock.setblocking(False)

    @property
    def target(self):
        return self.sock

    def _write_some(self, view) -> int:
        try:
            return self.sock.send(view)
        except BlockingIOError:
            return 0

    def _read_some(self, view):
        try:
            return self.sock.recv_into(view)
        except BlockingIOError:
            return None

    def _release(self):
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # the peer may have closed the socket already
            pass
        finally:
            self.sock.close()
