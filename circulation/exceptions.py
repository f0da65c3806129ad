class CirculationError(Exception):
    """Base class for every rejected circulation request."""


class BorrowLimitError(CirculationError): pass

class OverdueBlockError(CirculationError): pass

class AlreadyBorrowedError(CirculationError): pass

class NotBorrowedError(CirculationError): pass

class NotBorrowerError(CirculationError): pass

class UnknownRoleError(CirculationError): pass
