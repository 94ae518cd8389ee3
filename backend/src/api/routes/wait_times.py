"""
Wait Time Tracker - Wait Times API Routes
Thin HTTP glue over the refresh orchestrator and ranking engine.
"""

from flask import Blueprint, current_app, jsonify, request

from collector.refresh_orchestrator import RefreshOrchestrator, UpstreamUnavailable
from processor.ride_ranking import (
    SortDirection,
    SortField,
    build_park_view,
    parse_sort_direction,
    parse_sort_field,
)
from processor.wait_time_alerts import WaitAlert
from utils.logger import logger

wait_times_bp = Blueprint('wait_times', __name__)

ORCHESTRATOR_EXTENSION = 'refresh_orchestrator'


def get_orchestrator() -> RefreshOrchestrator:
    return current_app.extensions[ORCHESTRATOR_EXTENSION]


@wait_times_bp.route('/wait-times', methods=['GET'])
def get_wait_times():
    """
    Fresh wait times for every configured park plus stored history.

    Each request triggers an on-demand refresh; concurrent requests share a
    single upstream fetch.

    Response:
        200 OK: {"current": Snapshot, "history": [Snapshot, ...]}
        500 Internal Server Error: {"error": "Failed to fetch wait times"}
    """
    try:
        view = get_orchestrator().refresh()
    except UpstreamUnavailable as e:
        logger.error(f"Error in /api/wait-times: {e}", exc_info=True)
        return jsonify({"error": "Failed to fetch wait times"}), 500
    except Exception as e:
        logger.error(f"Unexpected error in /api/wait-times: {e}", exc_info=True)
        return jsonify({"error": "Failed to fetch wait times"}), 500

    return jsonify(view.to_dict()), 200


@wait_times_bp.route('/parks/<park_id>/rides', methods=['GET'])
def get_park_rides(park_id: str):
    """
    Ranked ride table for one park.

    Query Parameters:
        sort (str): name|waitTime|land|status|ticket|peak|favorite (default: favorite)
        direction (str): asc|desc (default: desc)
        q (str): Case-insensitive name filter
        favorites (str): Comma-separated ride ids the user has starred
        alert (str, repeatable): "ride_id:max_wait" wait time alert rules

    Uses the last successful refresh when there is one. If a later refresh
    failed, the response still carries that data with "stale": true.

    Response:
        200 OK: Park view
        400 Bad Request: Invalid sort, direction or alert rule
        404 Not Found: Park not in the current snapshot
        500 Internal Server Error: No data could be fetched
    """
    try:
        sort_field = parse_sort_field(request.args.get('sort', SortField.FAVORITE.value))
        direction = parse_sort_direction(request.args.get('direction', SortDirection.DESC.value))
    except ValueError as e:
        return jsonify({"error": "Invalid sort", "message": str(e)}), 400

    search_query = request.args.get('q', '')
    favorites = [f.strip() for f in request.args.get('favorites', '').split(',') if f.strip()]

    try:
        alerts = [WaitAlert.parse(rule) for rule in request.args.getlist('alert')]
    except ValueError as e:
        return jsonify({"error": "Invalid alert rule", "message": str(e)}), 400

    orchestrator = get_orchestrator()
    view = orchestrator.latest
    if view is None:
        try:
            view = orchestrator.refresh()
        except UpstreamUnavailable as e:
            logger.error(f"Error fetching rides for park {park_id}: {e}", exc_info=True)
            return jsonify({"error": "Failed to fetch wait times"}), 500

    park_view = build_park_view(
        view,
        park_id,
        field=sort_field,
        direction=direction,
        favorites=favorites,
        search_query=search_query,
        alerts=alerts
    )

    if park_view is None:
        return jsonify({"error": "Not Found", "message": f"Park {park_id} not in current data"}), 404

    response = park_view.to_dict()
    response["stale"] = orchestrator.last_error is not None
    return jsonify(response), 200
