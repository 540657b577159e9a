from chatimport.schemas.chat import ChatRead, ImportResponse, MessageRead, UserRead

__all__ = [
    "ChatRead",
    "ImportResponse",
    "MessageRead",
    "UserRead",
]
