from app.services.account_service import AccountService
from app.services.chat_service import ChatService
from app.services.contact_limit_service import ContactLimitService
from app.services.contact_service import ContactService
from app.services.inbox_ingestion_service import InboxIngestionService
from app.services.message_service import MessageService
from app.services.profile_view_service import ProfileViewService
from app.services.user_service import UserService

__all__ = [
    "AccountService",
    "ChatService",
    "ContactLimitService",
    "ContactService",
    "InboxIngestionService",
    "MessageService",
    "ProfileViewService",
    "UserService",
]
