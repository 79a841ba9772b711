"""Generation logic package.

This package holds the session state machine that orchestrates the template
workflow (listing, extraction, LaTeX generation, export), keeping
`templatex/api/routes.py` focused on HTTP routing.
"""

from .template_session import SessionRegistry  # noqa: F401
from .template_session import TemplateSession  # noqa: F401
