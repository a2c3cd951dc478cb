import logging
from datetime import datetime

from flask import Flask, abort, jsonify, request

import config
from advisory import IST, decode_query
from print_trigger import PrintTrigger
from receipt_view import build_receipt, get_layout, render_receipt

logger = logging.getLogger("cropsync-receipt")

app = Flask(__name__)


def now_local():
    return datetime.now(tz=IST)


def brand_info():
    return {
        "logo_url": config.LOGO_URL,
        "line": config.BRAND_LINE,
        "website": config.BRAND_WEBSITE,
        "phone": config.BRAND_PHONE,
    }


def current_record():
    query = request.query_string.decode("utf-8", errors="replace")
    return decode_query(query, now_local())


def receipt_page(layout_name):
    try:
        layout = get_layout(layout_name)
    except KeyError:
        abort(404)
    record = current_record()
    logger.info(
        "Rendering %s receipt %s (%d components)",
        layout.name,
        record.receipt_id,
        len(record.components),
    )
    view = build_receipt(record, layout)
    # the page schedules its own print; nothing runs server side
    trigger = PrintTrigger(delay_ms=config.PRINT_DELAY_MS)
    return render_receipt(view, trigger, brand_info())


@app.route("/")
def index():
    return receipt_page(config.DEFAULT_LAYOUT)


@app.route("/label")
def label():
    return receipt_page("label")


@app.route("/roll")
def roll():
    return receipt_page("roll")


@app.route("/api/advisory")
def api_advisory():
    record = current_record()
    logger.info("API /advisory called - receipt %s", record.receipt_id)
    return jsonify(record.as_dict())


@app.route("/health")
def health():
    return "ok", 200


@app.errorhandler(404)
def not_found(e):
    return "<h1>Not found</h1>", 404


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT)
