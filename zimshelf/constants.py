import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.environ.get('ZIMSHELF_DATA_DIR', os.path.join(APP_DIR, 'data'))
CONFIG_DIR = os.environ.get('ZIMSHELF_CONFIG_DIR', os.path.join(APP_DIR, 'config'))
DB_FILE = os.path.join(DATA_DIR, 'zimshelf.db')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')

ZIMSHELF_DB = 'sqlite:///' + DB_FILE

BUILD_VERSION = '20261019_0900'

ANONYMOUS_UPLOADER = 'Anonymous'

BOOK_TYPES = ['Textbook', 'Past Exam Paper', 'Greenbook', 'Bluebook', 'Syllabus']
CURRICULA = ['ZIMSEC', 'Cambridge', 'Other']
LEVELS = ['O-Level', 'A-Level']
EXAM_SESSIONS = ['June', 'October', 'N/A']

MIME_PDF = 'application/pdf'

# mime type -> default extension
ALLOWED_MIME_TYPES = {
    MIME_PDF: 'pdf',
    'application/epub+zip': 'epub',
    'application/msword': 'doc',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': 'docx',
    'application/vnd.ms-powerpoint': 'ppt',
    'application/vnd.openxmlformats-officedocument.presentationml.presentation': 'pptx',
}

MAX_UPLOAD_SIZE = 500 * 1024 * 1024  # 500MB

ADMIN_TOKEN_COOKIE = 'adminToken'
ADMIN_TOKEN_MAX_AGE = 7 * 24 * 60 * 60  # 7 days

USER_DOWNLOADS_LIMIT = 50

DEFAULT_SETTINGS = {
    "database": {
        "uri": None,
    },
    "storage": {
        "provider": "catbox",
        "catbox_api_url": "https://catbox.moe/user/api.php",
        "catbox_userhash": "",
        "supabase_url": "",
        "supabase_key": "",
        "supabase_bucket": "ebooks",
        "upload_timeout": 600,
        "thumbnail_timeout": 300,
        "proxy_base_url": "https://files.catbox.moe",
        "proxy_timeout": 60,
        "fallback_cover_url": "https://dabby.vercel.app/pdf_icon.png",
        "thumbnail_fallback_url": "https://dabby.vercel.app/pdf_icon.png",
        "legacy_cover_hosts": ["cdn.mrfrankofc.gleeze.com"],
    },
    "uploads": {
        "max_size": MAX_UPLOAD_SIZE,
        "allowed_mime_types": list(ALLOWED_MIME_TYPES.keys()),
    },
    "books": {
        "trending_days": 7,
        "trending_limit": 8,
        "most_downloaded_limit": 8,
        "top_uploaders_limit": 10,
    },
    "admin": {
        "username": "admin",
        "password": "",
    },
}

# environment variable -> (section, key)
ENV_OVERRIDES = {
    'DATABASE_URL': ('database', 'uri'),
    'STORAGE_PROVIDER': ('storage', 'provider'),
    'CATBOX_USERHASH': ('storage', 'catbox_userhash'),
    'SUPABASE_URL': ('storage', 'supabase_url'),
    'SUPABASE_KEY': ('storage', 'supabase_key'),
    'SUPABASE_BUCKET': ('storage', 'supabase_bucket'),
    'ADMIN_USERNAME': ('admin', 'username'),
    'ADMIN_PASSWORD': ('admin', 'password'),
}
