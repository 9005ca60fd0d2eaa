import logging
from abc import abstractmethod

logger = logging.getLogger(__name__)


class ConduitError(Exception):
    """ base class for errors raised by a conduit. """


class SocketError(ConduitError):
    """ An I/O failure on the conduit that is not a would-block condition.
        The connection should be considered dead. """


class ConnectionClosedError(SocketError):
    """ The peer closed the stream. """


class ConduitClosedError(ConduitError):
    """ The conduit was used after it was closed. This is a caller error. """


class Conduit:
    """
    A conduit is an open, two-way byte channel to a peer.

    send() either delivers every byte given to the transport or raises. recv() drains what is
    ready right now and never waits for more. No locking is done: one thread may send while
    another receives, anything else needs external ordering.
    """

    @property
    @abstractmethod
    def target(self):
        """ the underlying resource, such as the socket """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. Only open conduits may be sent to or received from. """
        raise NotImplementedError

    @abstractmethod
    def send(self, data) -> int:
        raise NotImplementedError

    @abstractmethod
    def recv_into(self, buffer) -> int:
        raise NotImplementedError

    def recv(self, capacity) -> bytes:
        """
        Receives up to capacity bytes that are available right now.
        :return: the bytes received, which may be empty.
        """
        if capacity < 0:
            raise ValueError("negative capacity %d" % capacity)
        buffer = bytearray(capacity)
        count = self.recv_into(buffer)
        return bytes(buffer[:count])

    @abstractmethod
    def close(self):
        """ releases the resources held by this conduit. A conduit can only be closed once. """
        raise NotImplementedError


class StreamConduit(Conduit):
    """
    Implements the send-all and drain-available loops over a non-blocking stream.
    Subclasses provide the primitive operations:

    - _write_some(view): write a prefix of view, returning the count accepted, 0 when the
      transport would block.
    - _read_some(view): read into view, returning the count read, 0 at end of stream,
      or None when nothing is ready.
    - _quiescent(): True when, after a read found nothing ready, there is nothing left to drain.
    - _release(): free the underlying resource.

    The primitives raise OSError for real failures, which are reported as SocketError.
    """

    def __init__(self):
        self._closed = False

    @property
    def open(self) -> bool:
        return not self._closed

    def check_open(self):
        if self._closed:
            raise ConduitClosedError("conduit to %s is closed" % (self.target,))

    def send(self, data) -> int:
        """
        Sends all of data. Would-block conditions are retried immediately, without sleeping.
        :return: len(data), always. A failure raises SocketError and no count is reported,
            even though a prefix of the data may have reached the peer.
        """
        self.check_open()
        view = memoryview(data).cast('B')
        length = len(view)
        sent = 0
        while sent < length:
            try:
                sent += self._write_some(view[sent:])
            except OSError as e:
                logger.debug("send to %s failed after %d of %d bytes: %s" % (self.target, sent, length, e))
                raise SocketError(str(e)) from e
        return sent

    def recv_into(self, buffer) -> int:
        """
        Reads into buffer whatever is available right now.
        Reading stops when the buffer is full, or a read finds nothing ready and the conduit is
        quiescent.
        :return: the number of bytes read, possibly 0.
        """
        self.check_open()
        view = memoryview(buffer).cast('B')
        capacity = len(view)
        total = 0
        while total < capacity:
            try:
                count = self._read_some(view[total:])
            except OSError as e:
                logger.debug("recv from %s failed: %s" % (self.target, e))
                raise SocketError(str(e)) from e
            if count is None:
                if self._quiescent():
                    break
            elif count == 0:
                if not total:
                    raise ConnectionClosedError("connection to %s closed by peer" % (self.target,))
                break
            else:
                total += count
        return total

    def close(self):
        self.check_open()
        self._closed = True
        self._release()
        logger.debug("closed conduit to %s" % (self.target,))

    @abstractmethod
    def _write_some(self, view) -> int:
        raise NotImplementedError

    @abstractmethod
    def _read_some(self, view):
        raise NotImplementedError

    def _quiescent(self) -> bool:
        return True

    @abstractmethod
    def _release(self):
        raise NotImplementedError


class ConduitDecorator(Conduit):
    """
    A ConduitDecorator wraps another conduit and delegates to its methods.
    This allows subclasses to easily override some behaviors while keeping others
    unchanged.
    """

    def __init__(self, decorate: Conduit):
        self.decorate = decorate

    @property
    def target(self):
        return self.decorate.target

    @property
    def open(self) -> bool:
        return self.decorate.open

    def send(self, data) -> int:
        return self.decorate.send(data)

    def recv_into(self, buffer) -> int:
        return self.decorate.recv_into(buffer)

    def recv(self, capacity) -> bytes:
        return self.decorate.recv(capacity)

    def close(self):
        self.decorate.close()


class ErrorReportingConduit(ConduitDecorator):
    """
    Reports socket errors that occur when sending or receiving.
    """
    def __init__(self, decorate: Conduit, handler):
        """
        :param handler a callable that is invoked each time a SocketError occurs. The error is
            re-raised after the handler returns.
        """
        super().__init__(decorate)
        self.handler = handler

    def send(self, data) -> int:
        try:
            return super().send(data)
        except SocketError:
            self.handler()
            raise

    def recv_into(self, buffer) -> int:
        try:
            return super().recv_into(buffer)
        except SocketError:
            self.handler()
            raise

    def recv(self, capacity) -> bytes:
        try:
            return super().recv(capacity)
        except SocketError:
            self.handler()
            raise
