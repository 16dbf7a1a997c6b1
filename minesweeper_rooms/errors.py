"""Recoverable errors reported back to the connection that caused them."""


class GameError(Exception):
    """Base class for user-facing game errors."""

    default_message = 'Request rejected.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RoomNotFound(GameError):
    default_message = 'Room not found.'


class RoomFull(GameError):
    default_message = 'Room is full.'


class OutOfTurn(GameError):
    default_message = 'It is not your turn.'


class InvalidCoordinates(GameError):
    default_message = 'Invalid cell coordinates.'


class UnknownAction(GameError):
    default_message = 'Unknown action.'


class InvalidGameConfig(GameError):
    default_message = 'Invalid game configuration.'


class GameAlreadyOver(GameError):
    default_message = 'The game is already over.'
