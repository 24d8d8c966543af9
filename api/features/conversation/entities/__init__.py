from api.features.conversation.entities.app import App, AppType
from api.features.conversation.entities.conversation import Conversation
from api.features.conversation.entities.message import ConversationMessage, MessageRole
from api.features.conversation.entities.reference import ConversationReference

__all__ = [
    "App",
    "AppType",
    "Conversation",
    "ConversationMessage",
    "ConversationReference",
    "MessageRole",
]
