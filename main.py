import os
import sys

import certifi

# Fix SSL certificate verification on macOS so ultralytics can fetch weights
if sys.platform == "darwin":
    os.environ["SSL_CERT_FILE"] = certifi.where()
    os.environ["REQUESTS_CA_BUNDLE"] = certifi.where()

from crowd_guard.runner import main


if __name__ == "__main__":
    main()
