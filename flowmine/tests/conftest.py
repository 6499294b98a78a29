import sys
import os
import logging

# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Add repository root to path for importing the flowmine package
package_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if package_path not in sys.path:
    sys.path.insert(0, package_path)

logger.debug(f"Added path for imports: {package_path}")
