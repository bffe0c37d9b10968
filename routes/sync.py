# routes/sync.py
from flask import Blueprint, request, jsonify
from pydantic import ValidationError
from database import get_db_session
from config import Config
from schemas.sync_schemas import SyncRequest, UserBibleSyncRequest, ChapterUploadRequest
from utils.auth import token_required
from utils.rate_limit import limiter, sync_rate_limit
from utils.sync import SyncReconciler
from utils.user_bibles import sync_user_bibles, save_chapters, load_chapters, BibleNotFound
import logging

logger = logging.getLogger(__name__)
sync_bp = Blueprint('sync', __name__)


def _validation_error(e):
    logger.warning(f"Rejected sync payload: {e.error_count()} validation errors")
    return jsonify({"error": "Invalid sync payload", "details": e.errors(include_url=False, include_context=False)}), 400


@sync_bp.route('', methods=['POST'])
@limiter.limit(sync_rate_limit)
@token_required
def sync(current_user_id):
    """Push the device's changes and pull the server's changes since its last sync."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        payload = SyncRequest.model_validate(data)
    except ValidationError as e:
        return _validation_error(e)

    if len(payload.changes) > Config.MAX_SYNC_CHANGES:
        return jsonify({"error": f"Too many changes in one sync (max {Config.MAX_SYNC_CHANGES})"}), 413

    try:
        with get_db_session() as db:
            result = SyncReconciler(db).exchange(
                current_user_id,
                payload.device_id,
                cursor=payload.last_sync_at,
                changes=payload.changes,
                full=payload.full_sync
            )
            response = result.to_json()
        return jsonify(response), 200
    except Exception as e:
        logger.error(f"Sync failed for user {current_user_id}: {str(e)}", exc_info=True)
        return jsonify({"error": "Sync failed"}), 500


@sync_bp.route('/changes', methods=['GET'])
@token_required
def pull_changes(current_user_id):
    """Pull only: ?deviceId=...&since=<millis>&full=1"""
    device_id = request.args.get('deviceId', '').strip()
    if not device_id:
        return jsonify({"error": "Missing deviceId"}), 400
    since = request.args.get('since', default=0, type=int)
    full = request.args.get('full', '').lower() in ('1', 'true', 'yes')

    try:
        with get_db_session() as db:
            response = SyncReconciler(db).pull(current_user_id, device_id, cursor=since, full=full).to_json()
        return jsonify(response), 200
    except Exception as e:
        logger.error(f"Pull failed for user {current_user_id}: {str(e)}", exc_info=True)
        return jsonify({"error": "Sync failed"}), 500


@sync_bp.route('/user-bibles', methods=['POST'])
@limiter.limit(sync_rate_limit)
@token_required
def sync_bibles(current_user_id):
    """Sync user bible metadata (not chapter data)."""
    try:
        payload = UserBibleSyncRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return _validation_error(e)

    try:
        with get_db_session() as db:
            bibles = [b.to_json() for b in sync_user_bibles(db, current_user_id, payload.bibles)]
        return jsonify({"bibles": bibles}), 200
    except BibleNotFound as e:
        return jsonify({"error": f"Bible {e} belongs to another user"}), 409
    except Exception as e:
        logger.error(f"User bible sync failed for user {current_user_id}: {str(e)}", exc_info=True)
        return jsonify({"error": "User bible sync failed"}), 500


@sync_bp.route('/user-bible-chapters/<bible_id>', methods=['POST'])
@token_required
def upload_chapters(current_user_id, bible_id):
    try:
        payload = ChapterUploadRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return _validation_error(e)

    try:
        with get_db_session() as db:
            count = save_chapters(db, current_user_id, bible_id, payload.chapters)
        return jsonify({"ok": True, "count": count}), 200
    except BibleNotFound:
        return jsonify({"error": "Bible not found"}), 404
    except Exception as e:
        logger.error(f"Upload chapters failed for bible {bible_id}: {str(e)}", exc_info=True)
        return jsonify({"error": "Upload failed"}), 500


@sync_bp.route('/user-bible-chapters/<bible_id>', methods=['GET'])
@token_required
def download_chapters(current_user_id, bible_id):
    try:
        with get_db_session() as db:
            chapters = load_chapters(db, current_user_id, bible_id)
        return jsonify({"chapters": chapters}), 200
    except BibleNotFound:
        return jsonify({"error": "Bible not found"}), 404
    except Exception as e:
        logger.error(f"Download chapters failed for bible {bible_id}: {str(e)}", exc_info=True)
        return jsonify({"error": "Download failed"}), 500
