class EventSource(object):
    """
    Notifies registered handlers of events, on the thread that fires them.
    Handlers are plain callables taking the event.
    """

    def __init__(self):
        self._handlers = []

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        self._handlers.append(handler)
        return self

    def remove(self, handler):
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, event):
        # iterate a copy, a handler may remove itself
        for handler in self.handlers():
            handler(event)
