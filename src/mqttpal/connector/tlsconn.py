import logging
import selectors
import ssl
import time

from mqttpal.conduit.base import Conduit
from mqttpal.conduit.tls_conduit import TLSConduit
from mqttpal.connector.base import CertificateVerificationError, TLSHandshakeError, TrustStoreError
from mqttpal.connector.socketconn import SocketConnector, Endpoint, connect_socket

logger = logging.getLogger(__name__)

# seconds allowed for the TLS handshake
handshake_timeout = 10.0


class TLSContext:
    """
    The TLS settings shared by all connections of a process.

    Create one and pass it to each TLSConnector. The SSL context and the trust store are
    loaded the first time a connection needs them and reused afterwards.
    """

    def __init__(self, ca_file, handshake_timeout=handshake_timeout, check_hostname=True):
        """
        :param ca_file: path to a PEM bundle of the certificates trusted to sign the peer's certificate
        :param handshake_timeout: seconds allowed for the handshake to complete
        :param check_hostname: when True, the peer certificate must match the host connected to
        """
        self.ca_file = ca_file
        self.handshake_timeout = handshake_timeout
        self.check_hostname = check_hostname
        self._context = None

    def load(self) -> ssl.SSLContext:
        """ creates the SSL context and loads the trust store, once. """
        if self._context is None:
            self._context = self._create_context()
        return self._context

    def _create_context(self):
        if not self.ca_file:
            raise TrustStoreError("no trust store given, a CA file is required for TLS")
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = self.check_hostname
        context.verify_mode = ssl.CERT_REQUIRED
        try:
            context.load_verify_locations(cafile=self.ca_file)
        except (OSError, ValueError, TypeError) as e:
            raise TrustStoreError("cannot load trust store %s: %s" % (self.ca_file, e)) from e
        logger.debug("loaded trust store %s" % self.ca_file)
        return context

    def wrap_socket(self, sock, server_hostname):
        return self.load().wrap_socket(sock, server_hostname=server_hostname, do_handshake_on_connect=False)


class TLSConnector(SocketConnector):
    """
    A connector that communicates data via a TLS session over a socket.
    The peer must present a certificate chain that verifies against the trust store.
    """

    def __init__(self, endpoint: Endpoint, tls_context: TLSContext, timeout=None, report_errors=True,
                 clock=time.monotonic):
        super().__init__(endpoint, timeout, report_errors)
        self.tls_context = tls_context
        self._clock = clock

    def _connect(self) -> Conduit:
        # the trust store must load before anything is sent to the peer
        self.tls_context.load()
        sock = connect_socket(self.endpoint, self.timeout)
        try:
            tls_sock = self.tls_context.wrap_socket(sock, server_hostname=self.endpoint.host)
        except (OSError, ValueError) as e:
            sock.close()
            raise TLSHandshakeError("cannot start TLS with %s: %s" % (self.endpoint, e)) from e
        try:
            self._handshake(tls_sock)
            self._verify(tls_sock)
        except Exception:
            tls_sock.close()
            raise
        logger.info("opened TLS session to %s using %s" % (self.endpoint, tls_sock.version()))
        return TLSConduit(tls_sock)

    def _handshake(self, tls_sock):
        """
        Drives the handshake on the non-blocking socket, waiting for the socket to become
        ready between steps until the handshake timeout expires.
        """
        tls_sock.setblocking(False)
        deadline = self._clock() + self.tls_context.handshake_timeout
        while True:
            try:
                tls_sock.do_handshake()
                return
            except ssl.SSLWantReadError:
                events = selectors.EVENT_READ
            except ssl.SSLWantWriteError:
                events = selectors.EVENT_WRITE
            except ssl.SSLCertVerificationError as e:
                raise CertificateVerificationError("certificate from %s not trusted: %s"
                                                   % (self.endpoint, e)) from e
            except OSError as e:
                raise TLSHandshakeError("handshake with %s failed: %s" % (self.endpoint, e)) from e
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise TLSHandshakeError("handshake with %s timed out after %ss"
                                        % (self.endpoint, self.tls_context.handshake_timeout))
            with selectors.DefaultSelector() as selector:
                selector.register(tls_sock, events)
                selector.select(remaining)

    def _verify(self, tls_sock):
        """ the handshake verifies the chain, this checks a certificate was actually presented. """
        if not tls_sock.getpeercert():
            raise CertificateVerificationError("%s presented no certificate" % (self.endpoint,))
