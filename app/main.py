"""
Flask Web Application for the Club Scorebook.

Provides an API for:
- Scoresheet preview (OCR + parse, nothing persisted but the audit record)
- Scoresheet confirmation (players, match details, season statistics)
- Season statistics reads
"""

import hmac
import logging
import logging.config
import sys
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import FlaskConfig, HOME_CLUB_NAME, LOGGING_CONFIG, SCOREBOOK_API_TOKEN, validate_config
from scorebook.data.database import get_db_connection
from scorebook.data.ingest import ScoresheetIngestor
from scorebook.utils.exceptions import (
    DuplicateScoresheetError,
    PersistenceError,
    ValidationError,
)

# Initialize Flask app
app = Flask(__name__)
app.config.from_object(FlaskConfig)
CORS(app)

logger = logging.getLogger(__name__)

# Lazy load the ingestor (the OCR engine is only built on first preview)
_ingestor: Optional[ScoresheetIngestor] = None


def get_ingestor() -> ScoresheetIngestor:
    """Get or initialize the scoresheet ingestor."""
    global _ingestor
    if _ingestor is None:
        _ingestor = ScoresheetIngestor()
        logger.info("Scoresheet ingestor initialized")
    return _ingestor


def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


def _authorized() -> bool:
    """Bearer token check; disabled when no token is configured."""
    if not SCOREBOOK_API_TOKEN:
        return True
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        return False
    return hmac.compare_digest(token.strip(), SCOREBOOK_API_TOKEN)


# ============================================================================
# Health
# ============================================================================

@app.route('/health', methods=['GET'])
def health():
    return jsonify({'success': True, 'status': 'ok', 'club': HOME_CLUB_NAME})


# ============================================================================
# Scoresheets
# ============================================================================

@app.route('/api/scoresheets/preview', methods=['POST'])
def preview_scoresheet():
    """
    OCR and parse an uploaded scoresheet for review.

    Accepts a multipart upload in ``file`` or JSON
    ``{"file_data": <base64 or data URI>, "file_name": ...}``.

    Returns:
        JSON with the parsed scoresheet and its source reference
    """
    try:
        upload = request.files.get('file')
        if upload is not None:
            image = upload.read()
            file_name = upload.filename
        else:
            data = request.get_json(silent=True) or {}
            image = data.get('file_data')
            file_name = data.get('file_name')

        if not image:
            return _error('No scoresheet image provided', 400)

        parsed = get_ingestor().preview(image, file_name=file_name)

        return jsonify({
            'success': True,
            'source_reference': parsed.source_reference,
            'parsed_data': parsed.to_dict(),
        })

    except ValidationError as e:
        return _error(str(e), 400)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error previewing scoresheet: {e}")
        return _error(str(e), 500)


@app.route('/api/scoresheets/confirm', methods=['POST'])
def confirm_scoresheet():
    """
    Persist a reviewed scoresheet.

    Expects JSON ``{"parsed_data": {...}, "source_reference": "..."}``.

    Returns:
        JSON with the number of entries processed
    """
    if not _authorized():
        return _error('Unauthorized', 401)

    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _error('Request body must be a JSON object', 400)

        result = get_ingestor().confirm(
            data.get('parsed_data'),
            source_reference=data.get('source_reference'),
        )

        return jsonify({
            'success': True,
            'message': f"Processed {result.processed_count} player entries",
            **result.to_dict(),
        })

    except ValidationError as e:
        return _error(str(e), 400)
    except DuplicateScoresheetError as e:
        return _error(str(e), 409)
    except PersistenceError as e:
        logger.error(f"Error confirming scoresheet: {e}")
        return _error(str(e), 500)
    except Exception as e:
        logger.error(f"Unexpected error confirming scoresheet: {e}")
        return _error(str(e), 500)


@app.route('/api/scoresheets/<source_reference>', methods=['GET'])
def get_scoresheet(source_reference):
    """Audit record for a previewed or confirmed scoresheet."""
    try:
        ingestor = get_ingestor()
        with get_db_connection(ingestor.db_path) as conn:
            record = ingestor.db_manager.get_scoresheet(conn, source_reference)

        if record is None:
            return _error(f"Scoresheet {source_reference} not found", 404)

        return jsonify({'success': True, 'scoresheet': record})

    except Exception as e:
        logger.error(f"Error fetching scoresheet {source_reference}: {e}")
        return _error(str(e), 500)


@app.route('/api/matches/<int:match_id>/details', methods=['GET'])
def get_match_details(match_id):
    """Per-player rows stored for one confirmed match."""
    try:
        ingestor = get_ingestor()
        with get_db_connection(ingestor.db_path) as conn:
            details = ingestor.db_manager.get_match_details(conn, match_id)

        if not details:
            return _error(f"Match {match_id} not found", 404)

        return jsonify({'success': True, 'match_id': match_id, 'details': details})

    except Exception as e:
        logger.error(f"Error fetching match {match_id}: {e}")
        return _error(str(e), 500)


# ============================================================================
# Statistics
# ============================================================================

@app.route('/api/statistics', methods=['GET'])
def get_season_statistics():
    """Season statistics for all club players, ordered by runs then wickets."""
    season = request.args.get('season', '').strip()
    if not season:
        return _error('season query parameter is required', 400)

    try:
        ingestor = get_ingestor()
        with get_db_connection(ingestor.db_path) as conn:
            stats = ingestor.db_manager.list_season_statistics(conn, season)

        return jsonify({'success': True, 'season': season, 'statistics': stats})

    except Exception as e:
        logger.error(f"Error fetching statistics for season {season}: {e}")
        return _error(str(e), 500)


@app.route('/api/players/<int:player_id>/statistics', methods=['GET'])
def get_player_statistics(player_id):
    """All seasons for one club player."""
    try:
        ingestor = get_ingestor()
        with get_db_connection(ingestor.db_path) as conn:
            stats = ingestor.db_manager.list_player_statistics(conn, player_id)

        if not stats:
            return _error(f"No statistics for player {player_id}", 404)

        return jsonify({'success': True, 'player_id': player_id, 'statistics': stats})

    except Exception as e:
        logger.error(f"Error fetching statistics for player {player_id}: {e}")
        return _error(str(e), 500)


# ============================================================================
# Error Handlers
# ============================================================================

@app.errorhandler(404)
def not_found(e):
    return _error('Not found', 404)


@app.errorhandler(413)
def too_large(e):
    return _error('Upload too large', 413)


@app.errorhandler(500)
def server_error(e):
    logger.error(f"Server error: {e}")
    return _error('Internal server error', 500)


# ============================================================================
# Main
# ============================================================================

def main():
    logging.config.dictConfig(LOGGING_CONFIG)

    try:
        validate_config()
    except RuntimeError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    app.run(host=FlaskConfig.HOST, port=FlaskConfig.PORT, debug=FlaskConfig.DEBUG)
    return 0


if __name__ == '__main__':
    sys.exit(main())
