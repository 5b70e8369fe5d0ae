"""
Redirect helper shared by the form-handling routes.

The one-shot notice a page would flash after a redirect travels in the
X-Notice response header, percent-encoded so store names outside latin-1
survive the trip. Clients unquote it and show it on the next page.
"""

from typing import Optional
from urllib.parse import quote

from fastapi.responses import RedirectResponse

NOTICE_HEADER = "X-Notice"


def redirect_with_notice(url: str, notice: Optional[str] = None, status_code: int = 303) -> RedirectResponse:
    """
    303 after a form POST (the browser follows with GET);
    302 for plain GET-to-GET redirects.
    """
    response = RedirectResponse(url=url, status_code=status_code)
    if notice:
        response.headers[NOTICE_HEADER] = quote(notice, safe=" !?.,:/'")
    return response
