from app.db.models.file_record import FileRecord, FileStatus
from app.db.models.chat_message import ChatMessage
from app.db.models.feedback import Feedback
from app.db.models.ingested_document import IngestedDocument

# These imports are required to ensure all models are discovered by SQLAlchemy
__all__ = [
    "FileRecord",
    "FileStatus",
    "ChatMessage",
    "Feedback",
    "IngestedDocument",
]
