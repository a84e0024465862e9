from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = PACKAGE_DIR / "data"

DEFAULT_PRODUCTS_FILE = DATA_DIR / "initial_products.json"
DEFAULT_USERS_FILE = DATA_DIR / "users.json"

PRODUCTS_COLLECTION = "products"
JOBS_COLLECTION = "jobs"
USERS_COLLECTION = "users"
ANNOUNCEMENTS_COLLECTION = "announcements"

HISTORY_LIMIT = 30
DEFAULT_MAX_BATCH_OPERATIONS = 500
DEFAULT_CHUNK_SIZE = 400

ENTRY_RESTOCK = "restock"
ENTRY_USAGE = "usage"
ENTRY_EDIT = "edit"
ENTRY_DETAILS_EDIT = "details_edit"

ROLE_ADMIN = "admin"
ROLE_USER = "user"

EDITABLE_DETAIL_FIELDS = ("name", "description", "unit")

PRODUCT_DEACTIVATED = "Producto desactivado"
PRODUCT_RESTORED = "Producto restaurado"

SESSION_USER_KEY = "inventory_user_session"
SEEN_ANNOUNCEMENTS_KEY = "inventory_seen_announcements"

INITIAL_SESSION_PREFIX = "initial_"
JOB_SESSION_PREFIX = "job_"

DEFAULT_UNIT = "pz"
BACKUP_FILENAME_TEMPLATE = "backup_productos_{date}.json"
