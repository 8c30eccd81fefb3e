from __future__ import annotations

# Importing every model module registers its mapper on Base.metadata so string
# relationship targets resolve and Alembic sees the full schema.
from coursemart.db.models import category as _category_model  # noqa: F401
from coursemart.db.models import course as _course_model  # noqa: F401
from coursemart.db.models import course_file as _course_file_model  # noqa: F401
from coursemart.db.models import language as _language_model  # noqa: F401
from coursemart.db.models import refresh_session as _refresh_session_model  # noqa: F401
from coursemart.db.models import shopping_cart as _shopping_cart_model  # noqa: F401
from coursemart.db.models import topic as _topic_model  # noqa: F401
from coursemart.db.models import user as _user_model  # noqa: F401
from coursemart.db.models import video as _video_model  # noqa: F401
