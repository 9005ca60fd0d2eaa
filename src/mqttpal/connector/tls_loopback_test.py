"""
Real TLS sessions against a server thread on the loopback interface, using certificates
issued by a throwaway certificate authority.
"""
import os
import shutil
import socket
import ssl
import tempfile
import threading
import unittest

import timeout_decorator
import trustme
from hamcrest import assert_that, is_, instance_of, raises, calling

from mqttpal.conduit.tls_conduit import TLSConduit
from mqttpal.connector.base import CertificateVerificationError
from mqttpal.connector.socketconn import Endpoint
from mqttpal.connector.tlsconn import TLSConnector, TLSContext


class TLSEchoServer(threading.Thread):
    """ accepts one TLS connection and echoes what it receives until the client goes away. """

    def __init__(self, context: ssl.SSLContext):
        super().__init__(daemon=True)
        self.context = context
        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.listener.bind(('127.0.0.1', 0))
        self.listener.listen(1)
        self.port = self.listener.getsockname()[1]
        self.error = None

    def run(self):
        try:
            sock, _ = self.listener.accept()
            with self.context.wrap_socket(sock, server_side=True) as tls_sock:
                while True:
                    data = tls_sock.recv(4096)
                    if not data:
                        break
                    tls_sock.sendall(data)
        except OSError as e:
            self.error = e
        finally:
            self.listener.close()


class TLSLoopbackTest(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.mkdtemp()
        self.ca = trustme.CA()
        server_context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        self.ca.issue_cert('127.0.0.1', 'localhost').configure_cert(server_context)
        self.server = TLSEchoServer(server_context)
        self.server.start()

    def tearDown(self):
        self.server.join(5)
        shutil.rmtree(self.directory)

    def ca_file(self, ca, name):
        path = os.path.join(self.directory, name)
        ca.cert_pem.write_to_path(path)
        return path

    def connector(self, ca_file):
        return TLSConnector(Endpoint('127.0.0.1', str(self.server.port)), TLSContext(ca_file),
                            timeout=5, report_errors=False)

    @timeout_decorator.timeout(20)
    def test_round_trip(self):
        conduit = self.connector(self.ca_file(self.ca, 'ca.pem')).open()
        try:
            assert_that(conduit, is_(instance_of(TLSConduit)))
            assert_that(conduit.peer_certificate, is_(instance_of(dict)))
            data = bytes(i % 251 for i in range(10000))
            assert_that(conduit.send(data), is_(10000))
            received = b''
            while len(received) < len(data):
                received += conduit.recv(4096)
            assert_that(received, is_(data))
            assert_that(conduit.recv(4096), is_(b''))
        finally:
            conduit.close()

    @timeout_decorator.timeout(20)
    def test_untrusted_issuer(self):
        sut = self.connector(self.ca_file(trustme.CA(), 'other-ca.pem'))
        assert_that(calling(sut.open), raises(CertificateVerificationError))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
