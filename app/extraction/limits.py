MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB
MIN_TEXT_CHARS = 50
EXTRACTION_TIMEOUT_S = 30.0

SUPPORTED_EXTENSIONS = ("pdf", "docx")
