"""
HTML pages served by the gallery.

Plain f-string templates. Image names are client-chosen, so every name
is URL-quoted where it goes into a URL and HTML-escaped where it goes
into markup.
"""

from html import escape
from typing import Iterable
from urllib.parse import quote


PAGE_STYLE = """
        body { background: #111827; color: #f9fafb; font-family: sans-serif;
               margin: 0; padding: 16px; display: flex; flex-direction: column;
               align-items: center; }
        h1 { font-size: 1.8rem; margin-bottom: 24px; }
        form.upload { display: flex; flex-direction: column; gap: 12px;
                      align-items: center; margin-bottom: 32px; }
        hr { width: 100%; max-width: 960px; border: 0; border-top: 1px solid #374151; }
        .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(240px, 1fr));
                gap: 24px; width: 100%; max-width: 960px; margin-top: 24px; }
        .card { background: #1f2937; border-radius: 8px; padding: 16px;
                display: flex; flex-direction: column; align-items: center; }
        .card img { max-width: 100%; max-height: 12rem; object-fit: contain;
                    border: 1px solid #374151; border-radius: 4px; margin-bottom: 12px; }
        input[type=submit] { color: #fff; border: 0; border-radius: 4px;
                             padding: 8px 16px; font-weight: bold; cursor: pointer; }
        .upload input[type=submit] { background: #2563eb; }
        .card input[type=submit] { background: #dc2626; }
        .empty { color: #9ca3af; }
        @media (max-width: 640px) { .upload input { width: 100%; } }
"""


def _image_card(name: str) -> str:
    url_name = quote(name, safe="")
    label = escape(name, quote=True)
    return f"""
        <div class="card">
            <img src="/images/{url_name}" alt="{label}" loading="lazy"/>
            <form method="post" action="/delete?name={url_name}">
                <input type="submit" value="Delete"/>
            </form>
        </div>"""


def render_gallery(names: Iterable[str]) -> str:
    """The gallery page: upload form on top, one card per image below."""
    cards = "".join(_image_card(name) for name in names)
    if not cards:
        cards = '<p class="empty">No images yet.</p>'

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Gallery</title>
    <style>{PAGE_STYLE}    </style>
</head>
<body>
    <h1>Gallery</h1>
    <form class="upload" method="post" enctype="multipart/form-data" action="/upload">
        <input type="file" name="file" accept="image/*" capture="environment" required/>
        <input type="submit" value="Upload"/>
    </form>
    <hr>
    <div class="grid">{cards}
    </div>
</body>
</html>
"""


def render_upload_success() -> str:
    return (
        "<html><head><meta http-equiv=\"refresh\" content=\"0;url=/gallery\"></head>"
        "<body>Upload successful. "
        "<a href=\"/gallery\">Click here if not redirected</a></body></html>"
    )


def render_upload_failure(message: str) -> str:
    return (
        f"<html><body>Upload failed: {escape(message)}. "
        "<a href=\"/gallery\">Go back</a></body></html>"
    )
