import logging
from abc import abstractmethod

from mqttpal.conduit.base import Conduit, ErrorReportingConduit
from mqttpal.support.events import EventSource
from mqttpal.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class ConnectError(ConnectorError):
    """ None of the addresses for the endpoint could be connected to. """


class ResolutionError(ConnectError):
    """ The endpoint host or port could not be resolved to any address. """


class TLSHandshakeError(ConnectorError):
    """ The TLS handshake failed or did not complete in time. """


class CertificateVerificationError(ConnectorError):
    """ The peer's certificate chain was not fully verified against the trust store. """


class TrustStoreError(CertificateVerificationError):
    """ The trust store could not be loaded, so no peer can be verified. """


class ConnectionNotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class ConnectorEvent(CommonEqualityMixin):
    """ base class for connector events. """
    def __init__(self, connector):
        self.connector = connector


class ConnectorConnectedEvent(ConnectorEvent):
    """ The connector was connected. """


class ConnectorDisconnectedEvent(ConnectorEvent):
    """ The connector was disconnected. """


class Connector:
    """ A connector describes an endpoint to which a conduit can be established. """

    def __init__(self):
        self.events = EventSource()

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @abstractmethod
    def open(self) -> Conduit:
        """
        Opens a new conduit to the endpoint. The caller owns the conduit and must close it.
        Raises a ConnectorError if the conduit cannot be opened.
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        """
        Determines if this connector is connected to its underlying resource.
        :return: True if this connector is connected to it's underlying resource. False otherwise.
        :rtype: bool
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        If the connection is not connected, raises ConnectionNotConnectedError
        """
        raise NotImplementedError

    @abstractmethod
    def connect(self):
        """
        Connects this connector to the underlying resource.
        If the connection is already connected, this method returns silently.
        Raises ConnectorError if the connection cannot be established.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self):
        raise NotImplementedError


class AbstractConnector(Connector):
    """ Manages the connection cycle to an endpoint."""

    def __init__(self, report_errors=True):
        super().__init__()
        self._conduit = None
        self._report_errors = report_errors

    def open(self) -> Conduit:
        try:
            return self._connect()
        except ConnectorError as e:
            method = logger.warning if self._report_errors else logger.debug
            method("error opening connection to %s: %s" % (self.endpoint, e))
            raise

    @property
    def connected(self):
        return self._conduit is not None and self._conduit.open

    def connect(self):
        if self.connected:
            return
        self._conduit = self.open()
        self.events.fire(ConnectorConnectedEvent(self))

    def disconnect(self):
        conduit = self._conduit
        if conduit is None:
            return
        self._conduit = None
        if conduit.open:
            conduit.close()
        self.events.fire(ConnectorDisconnectedEvent(self))

    @abstractmethod
    def _connect(self) -> Conduit:
        """ Template method for subclasses to open the conduit.
            If connection is not possible, a ConnectorError should be raised
        """
        raise NotImplementedError

    @property
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        raises ConnectionNotConnectedError if not connected
        """
        self.check_connected()
        return self._conduit

    def check_connected(self):
        if not self.connected:
            raise ConnectionNotConnectedError("not connected to %s" % (self.endpoint,))


class DelegateConnector(Connector):
    """
    Delegates methods to the delegate connector, unless they are overridden
    """
    def __init__(self, delegate):
        super().__init__()
        self.delegate = delegate

    @property
    def endpoint(self):
        return self.delegate.endpoint

    def open(self) -> Conduit:
        return self.delegate.open()

    @property
    def conduit(self) -> Conduit:
        return self.delegate.conduit

    @property
    def connected(self) -> bool:
        return self.delegate.connected

    def connect(self):
        return self.delegate.connect()

    def disconnect(self):
        return self.delegate.disconnect()


class CloseOnErrorConnector(DelegateConnector):
    """
    Disconnects the delegate when sending or receiving on its conduit fails.
    """

    def __init__(self, delegate):
        super().__init__(delegate)
        self._conduit = None

    @property
    def connected(self):
        return self._conduit is not None and self.delegate.connected

    def connect(self):
        if not self.connected:
            super().connect()
            self._conduit = ErrorReportingConduit(super().conduit, self.on_socket_error)

    @property
    def conduit(self):
        if self._conduit is None:
            raise ConnectionNotConnectedError("not connected to %s" % (self.endpoint,))
        return self._conduit

    def disconnect(self):
        self._conduit = None
        super().disconnect()

    def on_socket_error(self):
        logger.info("socket error on %s, disconnecting" % (self.endpoint,))
        self.disconnect()


class ConnectorContextManager:
    """
    Connects the connector on entry, providing the conduit, and disconnects it on exit.
    """

    def __init__(self, connector: Connector):
        self.connector = connector

    def __enter__(self) -> Conduit:
        self.connector.connect()
        logger.debug("connected to %s" % (self.connector.endpoint,))
        return self.connector.conduit

    def __exit__(self, exc_type, exc_value, traceback):
        logger.debug("disconnecting from %s" % (self.connector.endpoint,))
        self.connector.disconnect()
        return False
