"""Landing page."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["home"])

LANDING_PAGE = """<html>
    <head>
        <title>Welcome to the Media URL Generator</title>
    </head>
    <body>
        <h1>Welcome to the Media URL Generator</h1>
        <p>This application generates temporary URLs for media files stored in an S3-compatible storage.</p>
        <p>To get started, use the endpoint <strong>/media</strong> with your token and file path:</p>
        <ul>
            <li>Example: <strong>/media?token=your_token&amp;path=your_file_path</strong></li>
            <li>Add <strong>&amp;fresh=1</strong> to force a newly signed URL.</li>
        </ul>
        <p>For cache clearing, use the <strong>/media/refresh</strong> endpoint.</p>
    </body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
async def home():
    return LANDING_PAGE
