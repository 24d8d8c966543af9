"""Exceptions for the Conversation feature."""
from api.shared.exceptions import NotFoundError


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation lookup matched nothing.

    Nonce validation raises this too, with the same message whether the id is
    unknown or the nonce is wrong.
    """

    def __init__(self, conversation_id: str):
        super().__init__("Conversation", conversation_id)


class MessageNotFoundError(NotFoundError):
    """Raised when a message lookup matched nothing."""

    def __init__(self, message_id: str):
        super().__init__("ConversationMessage", message_id)
