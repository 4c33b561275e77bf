# proctrain/utils/errors.py
class TrainerError(RuntimeError):
    """
    Base of every fatal training failure.
    Propagates to the caller, never retried.
    """


class ConfigError(TrainerError):
    """
    Malformed or incomplete processor / trainer configuration.
    """


class IoError(TrainerError):
    """
    Missing, unreadable or unwritable file.
    """


class BufferOverflowError(IoError):
    """
    Compressed output does not fit the preallocated buffer.
    """


class SolverError(TrainerError):
    """
    Numerically degenerate least-squares system.
    """


class ExternalToolError(TrainerError):
    """
    The external fitting toolkit rejected the dataset.
    """


class ProcessorStateError(RuntimeError):
    """
    Lifecycle method called in the wrong state (programming error).
    """
