"""Database models.

Importing this package registers every table with ``Base.metadata``.
"""

from .user import UserModel  # noqa: F401
from .drawing import DrawingModel, RatingModel  # noqa: F401
from .comment import CommentModel  # noqa: F401
from .enrollment import EnrollmentModel  # noqa: F401
from .audit_log import AuditLogModel  # noqa: F401
from .page_view import PageViewModel  # noqa: F401
