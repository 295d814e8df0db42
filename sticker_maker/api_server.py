#!/usr/bin/env python3
"""
Sticker Maker API Server
Upload a photo, click the background, tune the sliders, export the sticker.
Each user interaction has its own endpoint; every change re-renders the sticker.
"""

import os
import logging
import uuid
from io import BytesIO
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

from .exceptions import ImageDecodeError, ImageEncodeError, UnsupportedImageTypeError
from .pipeline.session import StickerSession
from .services.image_service import ImageService
from .services.usage_log_service import UsageLogService, USAGE_LOG_FILE

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "50")) * 1024 * 1024

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
app.config['USAGE_LOG_FILE'] = USAGE_LOG_FILE

# Initialize services
image_service = ImageService()

logger = logging.getLogger(__name__)

# Session storage for sticker state
sessions = {}


def get_or_create_session(session_id: Optional[str] = None) -> StickerSession:
    """Get existing session or create new one."""
    if session_id is None:
        session_id = str(uuid.uuid4())

    if session_id not in sessions:
        sessions[session_id] = StickerSession(session_id, image_service=image_service)

    return sessions[session_id]


def lookup_session():
    """Session named in the JSON body, or None."""
    payload = request.get_json(silent=True) or {}
    session_id = payload.get('session_id')
    if not session_id or session_id not in sessions:
        return None, payload
    return sessions[session_id], payload


def session_response(session: StickerSession, message: str, **extra):
    return jsonify({
        'success': True,
        'session_id': session.session_id,
        'state': session.state.summary(),
        'message': message,
        **extra
    })


def get_usage_log_service() -> UsageLogService:
    return UsageLogService(app.config['USAGE_LOG_FILE'])


@app.route('/api/upload', methods=['POST'])
def upload_image():
    """Load a new source image (JPEG, PNG or WebP) into a session."""
    if 'image' not in request.files:
        return jsonify({'success': False, 'message': 'No image provided'}), 400

    file = request.files['image']
    if file.filename == '':
        return jsonify({'success': False, 'message': 'No file selected'}), 400

    if not image_service.is_supported_type(file.mimetype):
        return jsonify({'success': False, 'message': f'Unsupported image type: {file.mimetype}'}), 415

    session = get_or_create_session(request.form.get('session_id'))
    try:
        session.upload(file.read(), file.mimetype)
    except UnsupportedImageTypeError as e:
        return jsonify({'success': False, 'session_id': session.session_id, 'message': str(e)}), 415
    except ImageDecodeError as e:
        return jsonify({'success': False, 'session_id': session.session_id, 'message': str(e)}), 422
    except ImageEncodeError as e:
        return jsonify({'success': False, 'session_id': session.session_id, 'message': str(e)}), 500

    source = session.state.source
    logger.info(f"Session {session.session_id}: uploaded {file.filename} ({source.width}x{source.height})")
    return session_response(session, f'Loaded {source.width}x{source.height} image')


@app.route('/api/pick-color', methods=['POST'])
def pick_color():
    """Select the background colour under the clicked pixel."""
    session, payload = lookup_session()
    if session is None:
        return jsonify({'success': False, 'message': 'Invalid session'}), 400
    if session.state.source is None:
        return jsonify({'success': False, 'message': 'No image loaded'}), 409

    try:
        x, y = int(payload['x']), int(payload['y'])
    except (KeyError, TypeError, ValueError):
        return jsonify({'success': False, 'message': 'x and y must be integers'}), 400

    try:
        color = session.pick_color(x, y)
    except ImageEncodeError as e:
        return jsonify({'success': False, 'message': str(e)}), 500

    if color is None:
        return session_response(session, 'Transparent pixel ignored', selected=False)
    return session_response(session, f'Selected colour {color.as_dict()}', selected=True)


@app.route('/api/parameters', methods=['POST'])
def update_parameters():
    """Change tolerance / thickness / merge gap (any subset)."""
    session, payload = lookup_session()
    if session is None:
        return jsonify({'success': False, 'message': 'Invalid session'}), 400

    try:
        values = {
            name: int(payload[key])
            for key, name in (('tolerance', 'tolerance'),
                              ('thickness', 'thickness_px'),
                              ('merge_gap', 'merge_gap_px'))
            if payload.get(key) is not None
        }
    except (TypeError, ValueError):
        return jsonify({'success': False, 'message': 'Parameters must be integers'}), 400

    try:
        session.set_parameters(**values)
    except ImageEncodeError as e:
        return jsonify({'success': False, 'message': str(e)}), 500
    return session_response(session, 'Parameters updated')


@app.route('/api/reset', methods=['POST'])
def reset_session():
    """Restore default tolerance/thickness and clear the colour selection."""
    session, _ = lookup_session()
    if session is None:
        return jsonify({'success': False, 'message': 'Invalid session'}), 400
    try:
        session.reset()
    except ImageEncodeError as e:
        return jsonify({'success': False, 'message': str(e)}), 500
    return session_response(session, 'Settings reset')


@app.route('/api/state/<session_id>', methods=['GET'])
def session_state(session_id):
    if session_id not in sessions:
        return jsonify({'success': False, 'message': 'Session not found'}), 404
    return session_response(sessions[session_id], 'OK')


@app.route('/api/result/<session_id>', methods=['GET'])
def serve_result(session_id):
    """Serve the current sticker preview as PNG."""
    session = sessions.get(session_id)
    if session is None or session.state.result is None:
        return jsonify({'error': 'Result not found'}), 404
    return send_file(BytesIO(session.state.result.encoded), mimetype='image/png')


@app.route('/api/export/<session_id>', methods=['GET'])
def export_result(session_id):
    """Download the current sticker as sticker_<unix millis>.png."""
    session = sessions.get(session_id)
    exported = session.export() if session is not None else None
    if exported is None:
        return jsonify({'error': 'Nothing to export'}), 404

    filename, data = exported
    return send_file(BytesIO(data), mimetype='image/png', as_attachment=True, download_name=filename)


@app.route('/api/log-usage', methods=['POST'])
def log_usage():
    """Append a usage line to the log file and report the running total."""
    payload = request.get_json(silent=True) or {}
    action = payload.get('action')
    details = payload.get('details')
    if details is not None and not isinstance(details, dict):
        details = {'value': details}

    try:
        total, _ = get_usage_log_service().log_usage(str(action), details)
    except OSError as e:
        logger.error(f"Failed to write to log file: {e}")
        return jsonify({'status': 'error', 'message': 'Failed to write log'}), 500

    return jsonify({
        'status': 'success',
        'totalUses': total,
        'message': f'Logged successfully. Total uses: {total}'
    })


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Sticker Maker API is running',
        'active_sessions': len(sessions)
    })


@app.route('/api/clear-session', methods=['POST'])
def clear_session():
    """Clear a session and free memory."""
    session, _ = lookup_session()
    if session is None:
        return jsonify({'success': False, 'message': 'Session not found'})
    session.clear()
    del sessions[session.session_id]
    return jsonify({'success': True, 'message': 'Session cleared'})


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413


@app.errorhandler(400)
def bad_request(e):
    """Handle bad request error."""
    return jsonify({'error': 'Bad request'}), 400


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


def main():
    port = int(os.getenv("PORT", "3000"))
    print("🚀 Starting Sticker Maker API Server...")
    print(f"📝 Usage log: {Path(app.config['USAGE_LOG_FILE']).resolve()}")
    print(f"🔧 Max upload size: {MAX_CONTENT_LENGTH // (1024 * 1024)}MB")
    print("🌐 CORS enabled for frontend communication")
    print("="*60)
    app.run(host='0.0.0.0', port=port, debug=False, threaded=True)


if __name__ == '__main__':
    main()
