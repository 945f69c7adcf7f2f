"""qtictactoe exception classes."""


class QTicTacToeError(Exception):
    """Base exception for all qtictactoe errors."""

    pass


class IllegalMoveError(QTicTacToeError):
    """Raised when a mark is placed on an occupied or out-of-range cell."""

    pass


class NoLegalActionsError(QTicTacToeError):
    """Raised when an action is requested from a position with no empty cell."""

    pass


class GameOverError(QTicTacToeError):
    """Raised when a move is requested after the game has finished."""

    pass


class TrainingInProgressError(QTicTacToeError):
    """Raised when a move is requested while the value table is being trained."""

    pass


class ConfigurationError(QTicTacToeError):
    """Raised when configuration is invalid."""

    pass


class StorageError(QTicTacToeError):
    """Raised when the persistence backend cannot write."""

    pass
