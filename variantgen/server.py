"""HTTP API listing videos and serving generated playlists and segments."""

import logging
from pathlib import Path
from typing import Any, Dict, Sequence

from flask import Flask, abort, jsonify, send_from_directory
from flask_cors import CORS

from variantgen.catalog import VARIANT_CATALOG, VariantSpec
from variantgen.completion import CompletionProber
from variantgen.data_models import PLAYLIST_NAME, VideoAsset
from variantgen.errors import ScanError
from variantgen.file_processor import FileProcessor


MIMETYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/mp2t",
}


def describe_video(
    asset: VideoAsset,
    uploads_root: Path,
    catalog: Sequence[VariantSpec] = VARIANT_CATALOG
) -> Dict[str, Any]:
    """
    Build the API representation of one video.

    Args:
        asset: Source video
        uploads_root: Uploads directory
        catalog: Variants to list

    Returns:
        Dictionary with the original file URL, one playlist URL per variant
        and the suffixes of the variants that are ready to play
    """
    prober = CompletionProber(uploads_root)
    video: Dict[str, Any] = {
        "name": asset.name,
        "baseName": asset.base_name,
        "original": f"/videos/{asset.name}",
    }
    available = []
    for variant in catalog:
        video[f"hls_{variant.suffix}"] = f"/videos/{asset.base_name}_{variant.suffix}/{PLAYLIST_NAME}"
        if prober.exists(asset, variant):
            available.append(variant.suffix)
    video["available"] = available
    return video


def register_routes(app: Flask, uploads_root: Path, catalog: Sequence[VariantSpec] = VARIANT_CATALOG):
    """
    Register the API and static routes.

    Args:
        app: Flask application
        uploads_root: Directory holding videos and their variants
        catalog: Variants advertised for each video
    """
    file_processor = FileProcessor(uploads_root)

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({"status": "ok", "message": "Video streaming API is running"})

    @app.route('/api/videos', methods=['GET'])
    def list_videos():
        """List all videos with their variant playlist URLs."""
        if not uploads_root.is_dir():
            return jsonify({"videos": []})
        try:
            assets = file_processor.find_video_assets()
        except ScanError as e:
            logging.error(f"Error listing videos: {e}")
            return jsonify({"error": "Failed to list videos"}), 500
        return jsonify({"videos": [describe_video(asset, uploads_root, catalog) for asset in assets]})

    @app.route('/api/videos/<video_name>', methods=['GET'])
    def get_video(video_name):
        """Get a single video by file name."""
        video_path = uploads_root / video_name
        if not FileProcessor.is_video_file(video_path):
            return jsonify({"error": "Video not found"}), 404
        asset = VideoAsset.from_path(video_path)
        return jsonify({"video": describe_video(asset, uploads_root, catalog)})

    @app.route('/videos/<path:filename>', methods=['GET'])
    def serve_video_file(filename):
        """Serve source videos, playlists and segments from the uploads directory."""
        if not uploads_root.is_dir():
            abort(404)
        mimetype = MIMETYPES.get(Path(filename).suffix.lower())
        return send_from_directory(str(uploads_root.resolve()), filename, mimetype=mimetype)


def create_app(uploads_root: Path, catalog: Sequence[VariantSpec] = VARIANT_CATALOG) -> Flask:
    """
    Create the Flask application serving an uploads directory.

    Args:
        uploads_root: Directory holding videos and their variants
        catalog: Variants advertised for each video

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    # Players load playlists and segments from other origins
    CORS(app)
    register_routes(app, uploads_root, catalog)
    logging.info(f"Flask app created for {uploads_root}")
    return app
