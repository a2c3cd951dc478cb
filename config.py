import os
import logging

from dotenv import load_dotenv

load_dotenv()

PRINT_DELAY_MS = int(os.getenv("PRINT_DELAY_MS", "800"))
DEFAULT_LAYOUT = os.getenv("DEFAULT_LAYOUT", "label").strip().lower()
PORT = int(os.getenv("PORT", "5000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGO_URL = os.getenv("LOGO_URL", "https://kiosk.cropsync.in/logo_v.jpeg").strip()
BRAND_LINE = os.getenv("BRAND_LINE", "Thank You for Using CropSync Kiosk").strip()
BRAND_WEBSITE = os.getenv("BRAND_WEBSITE", "www.cropsync.in").strip()
BRAND_PHONE = os.getenv("BRAND_PHONE", "+91-91828 67605").strip()

logging.basicConfig(
    level=LOG_LEVEL, format="[%(asctime)s] %(levelname)s %(message)s"
)
