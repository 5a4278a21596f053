# fireguide_dashboard/app/__init__.py
import logging

logger = logging.getLogger(__name__)
logger.info("FireGuide Dashboard App Initialized")
