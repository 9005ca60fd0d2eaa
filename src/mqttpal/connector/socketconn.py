import logging
import socket
from collections import namedtuple

from mqttpal.conduit.base import Conduit
from mqttpal.conduit.socket_conduit import SocketConduit
from mqttpal.connector.base import AbstractConnector, ConnectError, ResolutionError

logger = logging.getLogger(__name__)

# seconds allowed for each connect attempt, None waits as long as the OS does
connect_timeout = 5.0


class Endpoint(namedtuple('Endpoint', ['host', 'port'])):
    """
    Describes a stream server endpoint. The port may be a number or a service name.
    """
    __slots__ = ()

    def key(self):
        """
        >>> Endpoint('broker', 1883).key()
        'broker:1883'
        >>> Endpoint('broker', 'mqtt').key()
        'broker:mqtt'
        """
        return str(self.host) + ':' + str(self.port)

    def __str__(self):
        return self.key()


def resolve(endpoint: Endpoint):
    """
    Resolves the endpoint to the addresses that may be connected to, in preference order.
    Any address family is accepted.
    :return: a list of (family, type, proto, canonname, sockaddr) tuples
    """
    try:
        candidates = socket.getaddrinfo(endpoint.host, endpoint.port, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError("cannot resolve %s: %s" % (endpoint, e)) from e
    if not candidates:
        raise ResolutionError("no addresses for %s" % (endpoint,))
    return candidates


def connect_socket(endpoint: Endpoint, timeout=None) -> socket.socket:
    """
    Connects a socket to the first address of the endpoint that accepts the connection.
    :param timeout: the time allowed for each address, in seconds.
    :return: the connected socket, in blocking mode.
    """
    last_error = None
    for family, type_, proto, _, sockaddr in resolve(endpoint):
        try:
            sock = socket.socket(family, type_, proto)
        except OSError as e:
            last_error = e
            continue
        try:
            sock.settimeout(timeout)
            sock.connect(sockaddr)
            sock.settimeout(None)
            return sock
        except OSError as e:
            logger.debug("cannot connect to %s at %s: %s" % (endpoint, sockaddr, e))
            last_error = e
            sock.close()
    raise ConnectError("cannot connect to %s: %s" % (endpoint, last_error)) from last_error


class SocketConnector(AbstractConnector):
    """
    A connector that communicates data via a plain socket.
    """
    def __init__(self, endpoint: Endpoint, timeout=None, report_errors=True):
        """
        :param endpoint: the host and port to connect to
        :param timeout: seconds allowed for each connect attempt, defaults to the module connect_timeout.
        """
        super().__init__(report_errors)
        self._endpoint = endpoint
        self.timeout = connect_timeout if timeout is None else timeout

    @property
    def endpoint(self):
        return self._endpoint

    def _connect(self) -> Conduit:
        sock = connect_socket(self._endpoint, self.timeout)
        logger.info("opened socket to %s" % (self._endpoint,))
        return SocketConduit(sock)
