"""
The transport functions used by the protocol engine: connect() opens a conduit,
send() and recv() move bytes through it and close() releases it.

Any error raised by send() or recv() means the connection is dead; reconnecting is up to the caller.
"""
import logging

from mqttpal.conduit.base import Conduit
from mqttpal.config.config import fetch_conf_path
from mqttpal.connector.base import Connector, TrustStoreError
from mqttpal.connector.socketconn import Endpoint, SocketConnector
from mqttpal.connector.tlsconn import TLSConnector, TLSContext

logger = logging.getLogger(__name__)


def connector_for(address, port, tls_context: TLSContext=None, timeout=None, report_errors=True) -> Connector:
    """
    Chooses the backend for an endpoint: a TLS connector when a TLS context is given,
    a plain socket connector otherwise.
    """
    endpoint = Endpoint(address, port)
    if tls_context is not None:
        return TLSConnector(endpoint, tls_context, timeout=timeout, report_errors=report_errors)
    return SocketConnector(endpoint, timeout=timeout, report_errors=report_errors)


def connector_from_config(config, path=('transport',)) -> Connector:
    """
    Builds the connector described by a validated transport configuration.
    :param config: the configuration, see load_config()
    :param path: the names of the sections leading to the transport section
    """
    section = fetch_conf_path(config, path)
    if section is None:
        raise KeyError("no configuration section %s" % '.'.join(path))
    tls_context = None
    tls = section.get('tls')
    if tls and tls['enabled']:
        if not tls['ca_file']:
            raise TrustStoreError("TLS is enabled for %s:%s but no ca_file is configured"
                                  % (section['host'], section['port']))
        tls_context = TLSContext(tls['ca_file'], handshake_timeout=tls['handshake_timeout'],
                                 check_hostname=tls['check_hostname'])
    logger.debug("configured %s connection to %s:%s" %
                 ('TLS' if tls_context else 'plain', section['host'], section['port']))
    return connector_for(section['host'], section['port'], tls_context, timeout=section['connect_timeout'])


def connect(address, port, tls_context: TLSContext=None, timeout=None) -> Conduit:
    """
    Opens a conduit to address:port.
    Raises ResolutionError, ConnectError, TLSHandshakeError or CertificateVerificationError.
    """
    return connector_for(address, port, tls_context, timeout).open()


def send(conduit: Conduit, data) -> int:
    return conduit.send(data)


def recv(conduit: Conduit, capacity) -> bytes:
    return conduit.recv(capacity)


def close(conduit: Conduit):
    conduit.close()
