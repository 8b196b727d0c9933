"""Constants for Resume Intake."""

from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".resume-intake"
CREDENTIALS_PATH = CONFIG_DIR / "credentials.json"
TOKEN_PATH = CONFIG_DIR / "token.json"
INTAKE_DB_PATH = CONFIG_DIR / "intake.db"
RESUME_DIR = CONFIG_DIR / "resumes"

# --- Mailbox ---
DEFAULT_IMAP_HOST = "imap.gmail.com"
DEFAULT_IMAP_PORT = 993
DEFAULT_FOLDER = "INBOX"
DEFAULT_SCAN_INTERVAL_MS = 5 * 60 * 1000
SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]
PAGE_SIZE = 500  # messages per Gmail list page
MAX_STRUCTURE_DEPTH = 32

# --- Attachments ---
RESUME_EXTENSIONS = (".pdf", ".doc", ".docx")
MIME_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

PDF_MAGIC = b"%PDF"
ZIP_MAGIC = b"PK\x03\x04"
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"  # legacy .doc

# --- Ingestion log ---
STATUS_PROCESSED = "processed"
STATUS_FAILED = "failed"
STATUS_DUPLICATE = "duplicate"
STATUS_SKIPPED = "skipped"
LOG_STATUSES = (STATUS_PROCESSED, STATUS_FAILED, STATUS_DUPLICATE)

# --- Candidate defaults ---
UNKNOWN_CANDIDATE_NAME = "Unknown (from email)"
CANDIDATE_STATUS_NEW = "profile_submitted"
CANDIDATE_SOURCE = "email"

# --- Classifier ---
CONFIDENCE_PER_MATCH = 15
CONFIDENCE_THRESHOLD = 30
MIN_KEYWORD_MATCHES = 2
NEGATIVE_WEIGHT = 2

POSITIVE_KEYWORDS = [
    # application intent
    "application for",
    "applying for",
    "job application",
    "apply for",
    "interested in the",
    "candidacy",
    # resume submission
    "resume",
    "curriculum vitae",
    "attached my cv",
    "attached cv",
    "please find attached",
    "cover letter",
    # role / position
    "position",
    "job opening",
    "vacancy",
    "role of",
    "developer",
    "engineer",
    # experience
    "years of experience",
    "experience in",
    "work experience",
    "fresher",
    "notice period",
]

NEGATIVE_KEYWORDS = [
    "unsubscribe",
    "newsletter",
    "invoice",
    "receipt",
    "order confirmation",
    "your order",
    "payment",
    "discount",
    "% off",
    "limited time offer",
    "password reset",
    "reset your password",
    "verify your",
    "verification code",
    "security alert",
    "new sign-in",
    "one-time password",
]

# --- Field extraction ---
RESUME_TEXT_LIMIT = 2000
NAME_SCAN_LINES = 8
MAX_EXPERIENCE_YEARS = 50
DEFAULT_DOMAIN = "Full Stack"
FRESHER_BUCKET = "Fresher/Intern"

# Evaluation order matters: ties go to the earlier domain.
DOMAIN_KEYWORDS = {
    "Frontend": ["react", "vue", "angular", "html", "css", "javascript", "typescript", "frontend"],
    "Backend": [
        "node",
        "express",
        "django",
        "flask",
        "java",
        "spring",
        "golang",
        "backend",
        "sql",
        "mongodb",
    ],
    "Data Science": [
        "python",
        "pandas",
        "numpy",
        "scikit",
        "pytorch",
        "tensorflow",
        "machine learning",
        "data science",
    ],
    "DevOps": ["docker", "kubernetes", "aws", "azure", "jenkins", "ci/cd", "terraform"],
    "Mobile": ["react native", "flutter", "android", "ios", "swift", "kotlin"],
}

# (minimum years, label), checked top-down
EXPERIENCE_BUCKETS = [
    (10, "10+ years"),
    (8, "8-10 years"),
    (6, "6-8 years"),
    (4, "4-6 years"),
    (2, "2-4 years"),
    (1, "1-2 years"),
]
DEFAULT_EXPERIENCE_BUCKET = "0-1 years"

NAME_HEADER_WORDS = [
    "resume",
    "curriculum",
    "vitae",
    "objective",
    "summary",
    "profile",
    "education",
    "experience",
    "skills",
    "projects",
    "contact",
    "references",
    "declaration",
    "certifications",
]

FRESHER_PHRASES = ["fresher", "intern", "internship", "entry level", "entry-level", "recent graduate"]
