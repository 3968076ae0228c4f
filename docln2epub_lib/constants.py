DOMAINS = ["docln.net", "ln.hako.vn", "docln.sbs"]
BASE_URL = "https://docln.net"

# Listing categories: original works and AI translations
CATEGORIES = {
    "sang-tac": "Sáng tác",
    "ai-dich": "AI dịch",
}
DEFAULT_CATEGORY = "sang-tac"

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Referer": "https://docln.net/",
}
HTML_PARSER = "html.parser"

REQUEST_TIMEOUT = 30
CHAPTER_DELAY = 0.5
THREAD_NUM = 1
ANTI_BAN_EVERY = 100
ANTI_BAN_PAUSE = 60

NOCOVER_MARKER = "nocover"
DEFAULT_IMAGE_EXT = "jpg"

# Package layout
MIMETYPE_FILE = "mimetype"
MIMETYPE = "application/epub+zip"
META_INF_DIR = "META-INF"
CONTAINER_FILE = "container.xml"
OEBPS_DIR = "OEBPS"
OPF_FILE = "content.opf"
NCX_FILE = "toc.ncx"
CSS_FILE = "style.css"
IMAGES_DIR = "images"
TEXT_DIR = "text"

WORKDIR_PREFIX = "epub_"
ARCHIVE_PREFIX = "docln_"
EPUB_EXT = ".epub"

LANGUAGE = "vi"
GENERATOR = "docln2epub"
IDENTIFIER_PREFIX = "docln"

XHTML_MEDIA_TYPE = "application/xhtml+xml"
NCX_MEDIA_TYPE = "application/x-dtbncx+xml"
CSS_MEDIA_TYPE = "text/css"
OPF_MEDIA_TYPE = "application/oebps-package+xml"

IMAGE_MEDIA_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}

IMAGE_FORMAT_EXTS = {"JPEG": "jpg", "PNG": "png", "GIF": "gif", "WEBP": "webp"}

CSS = """
body { margin: 0; padding: 5px; text-align: justify; line-height: 1.4em; font-family: serif; }
h1, h2, h3 { text-align: center; margin: 1em 0; font-weight: bold; }
img { display: block; margin: 10px auto; max-width: 100%; height: auto; }
p { margin-bottom: 1em; text-indent: 1em; }
div.volume-cover { text-align: center; margin-top: 10%; }
div.volume-cover img { max-height: 80vh; }
"""
