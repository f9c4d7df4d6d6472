"""Local stand-in for the hosted transliteration page.

Serves a page with the same observable shape as the real one (a textarea and
a ``div.bg-slate-50`` output region that updates after a debounce) so the
harness can be exercised offline.  Words are looked up in a small lexicon;
anything unknown passes through unchanged.  It is not a transliterator.
"""

import os
import re
import sys
import time

from flask import Flask, jsonify, request, send_from_directory
from flask_cors import CORS

from . import config

PAGES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "pages")

LEXICON = {
    "mama": "මම",
    "gedhara": "ගෙදර",
    "yanavaa": "යනවා",
    "api": "අපි",
    "heta": "හෙට",
    "mata": "මට",
    "eeka": "ඒක",
    "epaa": "එපා",
    "eka": "එක",
    "oyaa": "ඔයා",
    "machan": "මචන්",
    "karanna": "කරන්න",
    "boru": "බොරු",
    "kiyanna": "කියන්න",
    "hari": "හරි",
    "bold": "බොල්ඩ්",
}

WORD_RE = re.compile(r"[A-Za-z]+")

app = Flask(__name__)
CORS(app)
app.config.setdefault("LATENCY_MS", 0)


def transliterate(text, lexicon=None):
    """Replace each Latin word found in the lexicon, leave everything else as is."""
    lexicon = LEXICON if lexicon is None else lexicon
    return WORD_RE.sub(lambda m: lexicon.get(m.group(0), m.group(0)), text)


@app.route("/")
def index():
    return send_from_directory(PAGES_DIR, "transliterator.html")


@app.route("/pages/<path:filename>")
def serve_pages(filename):
    return send_from_directory(PAGES_DIR, filename)


@app.route("/transliterate", methods=["POST"])
def transliterate_endpoint():
    data = request.get_json(silent=True)
    if data is None:
        print("Error: No data received")
        return jsonify({"error": "No data received", "status": "error"}), 400

    text_input = data.get("text", "")
    if not isinstance(text_input, str):
        return jsonify({"error": "'text' must be a string", "status": "error"}), 400

    latency_ms = app.config["LATENCY_MS"]
    if latency_ms:
        time.sleep(latency_ms / 1000)

    output = transliterate(text_input)
    print(f"Transliterated {text_input[:60]!r} -> {output[:60]!r}")
    return jsonify({"output": output, "status": "completed"})


def run(host=config.STANDIN_HOST, port=config.STANDIN_PORT, latency_ms=0):
    app.config["LATENCY_MS"] = latency_ms
    print(f"Stand-in transliterator on http://{host}:{port}/")
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":
    sys.stdout.reconfigure(line_buffering=True)
    run()
