"""postdesk: backoffice for blog articles.

Structured article bodies (sections of typed elements) are edited in
memory, persisted as JSON, and rendered to HTML fragments and standalone
SEO preview documents.
"""

__version__ = "0.3.0"
