class CommonEqualityMixin(object):
    """ value equality for simple objects: same class and the same attribute values. """

    def __eq__(self, other):
        return isinstance(other, self.__class__) and vars(self) == vars(other)

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = object.__hash__
