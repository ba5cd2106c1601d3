"""
WaterOps Monitor
Application Entry Point

This file serves as the entry point for the Flask application.
It uses the application factory pattern defined in the waterops package.
"""

import logging

from waterops import create_app
from waterops.config import Config

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

# Create the Flask application using the factory
app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
