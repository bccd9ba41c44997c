from app.models.account import ProviderAccount
from app.models.chat import Chat, ChatAttendee
from app.models.contact import Contact
from app.models.message import Message, MessageAttachment
from app.models.profile_view import ProfileView
from app.models.subscription import Subscription
from app.models.user import User

__all__ = [
    "Chat",
    "ChatAttendee",
    "Contact",
    "Message",
    "MessageAttachment",
    "ProfileView",
    "ProviderAccount",
    "Subscription",
    "User",
]
