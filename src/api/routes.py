# src/api/routes.py
# The /test endpoints
#
# Every handler binds its parameters, runs one probe and serializes the
# ProbeResult. Probe failures are part of the response body ({"ok": false,
# "error": ...}) and still use HTTP 200; only unbindable parameters get a 400.

from flask import Blueprint, jsonify

from config import settings
from db.pool import get_pool_status
from probes import run_query, hold_transaction, hold_connection, ping
from .params import int_param, bool_param

# Everything here lives under /test
probe_routes = Blueprint("probes", __name__, url_prefix="/test")


@probe_routes.route('/query', methods=['GET'])
def query():
    """
    Simple query with optional server-side delay.

    Query Parameters:
        sleepSec: seconds to pg_sleep before returning (default 0)

    Example:
        GET /test/query?sleepSec=3
        -> {"ok": true, "elapsed_ms": 3004, "sleepSec": 3}
    """
    sleep_sec = int_param('sleepSec', default=0)
    return jsonify(run_query(sleep_sec).to_dict()), 200


@probe_routes.route('/hold-tx', methods=['POST'])
def hold_tx():
    """
    Hold an open transaction for holdSec seconds.

    Parameters:
        holdSec: seconds to keep the transaction open (default 30)
        commit: commit instead of rolling back at the end (default false)

    Example:
        POST /test/hold-tx?holdSec=60&commit=true
        -> {"ok": true, "held_sec": 60, "committed": true, "elapsed_ms": 60012}
    """
    hold_sec = int_param('holdSec', default=settings.probe.default_hold_sec)
    commit = bool_param('commit', default=False)
    return jsonify(hold_transaction(hold_sec, commit=commit).to_dict()), 200


@probe_routes.route('/hold-conn', methods=['POST'])
def hold_conn():
    """
    Hold a pooled connection for holdSec seconds without querying.

    Parameters:
        holdSec: seconds to keep the connection checked out (default 30)

    Example:
        POST /test/hold-conn?holdSec=10
        -> {"ok": true, "held_sec": 10, "elapsed_ms": 10001}
    """
    hold_sec = int_param('holdSec', default=settings.probe.default_hold_sec)
    return jsonify(hold_connection(hold_sec).to_dict()), 200


@probe_routes.route('/ping', methods=['GET'], endpoint='ping')
def ping_route():
    """
    Measure acquisition plus a trivial round trip.

    Example:
        GET /test/ping
        -> {"ok": true, "acquire_and_query_ms": 2}
    """
    return jsonify(ping().to_dict()), 200


@probe_routes.route('/pool', methods=['GET'])
def pool_status():
    """
    Current pool usage: in_use, available and waiting counts.

    Handy next to /test/ping while hold probes are running.
    """
    return jsonify(get_pool_status()), 200
