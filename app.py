# app.py
from flask import Flask, jsonify, request, g
from flask_cors import CORS
from routes.bible import bible_bp
from routes.reference import reference_bp
from routes.sync import sync_bp
from utils.rate_limit import limiter
from database import get_db_session, init_db
from config import Config
from sqlalchemy import text
import os
import logging
import time
import sys
from werkzeug.middleware.proxy_fix import ProxyFix

# Configure logging to output to stdout
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

# Use ProxyFix to handle proxy headers properly
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

app.json.sort_keys = False  # Preserve order of keys in JSON responses
app.json.ensure_ascii = False  # Norwegian book names (æ, ø, å) as-is
app.json.compact = True
app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024  # 10MB, uploaded bible chapters come in chunks

CORS(app, resources={
    r"/api/*": {
        "origins": Config.CORS_ORIGINS,
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type", "Authorization"],
        "expose_headers": ["Content-Type", "Authorization"],
        "supports_credentials": True
    }
})

# Ensure URLs with or without trailing slashes are handled the same way
app.url_map.strict_slashes = False

limiter.init_app(app)

# Register blueprints
app.register_blueprint(bible_bp, url_prefix='/api/bible')
app.register_blueprint(reference_bp, url_prefix='/api/reference')
app.register_blueprint(sync_bp, url_prefix='/api/sync')


@app.before_request
def before_request():
    g.start_time = time.time()

@app.after_request
def after_request(response):
    # Log request duration
    duration = time.time() - g.get('start_time', time.time())
    logger.info(f"{request.method} {request.path} -> {response.status_code} in {duration:.3f} seconds")
    return response

@app.errorhandler(413)
def payload_too_large(e):
    return jsonify({'error': 'Request too large'}), 413

@app.errorhandler(429)
def too_many_requests(e):
    logger.warning(f"Rate limit hit on {request.path}: {e.description}")
    return jsonify({'error': 'Too many requests'}), 429

@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint that also verifies the user database connection"""
    try:
        with get_db_session() as db:
            db.execute(text('SELECT 1'))
        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'timestamp': time.time()
        })
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return jsonify({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': time.time()
        }), 500

if __name__ == '__main__':
    print("Starting Flask server...")
    init_db()  # local SQLite; production schema comes from Alembic
    port = int(os.getenv('PORT', 5001))
    app.run(debug=True, port=port)
