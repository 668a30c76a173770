#!/usr/bin/env python3
"""
Scan Autocrop API Server
Upload one scanned image, get it back cropped to its content as a PNG data URL.
"""

import os
import logging
import uuid
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.utils import secure_filename

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

from scancrop.exceptions import DecodeError, DegenerateBoundsError, DimensionError
from scancrop.models.crop_settings import CropSettings
from scancrop.pipeline.autocrop import locate_content, crop_content
from scancrop.services.image_service import ImageService

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "data/temp_uploads")
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,bmp,tif,tiff").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "100")) * 1024 * 1024

app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Initialize services
image_service = ImageService()

logger = logging.getLogger(__name__)


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def settings_from_form(form) -> CropSettings:
    """Overlay request form fields on the environment settings. Raises ValueError."""
    margin = form.get('margin')
    threshold = form.get('threshold')
    debug = form.get('debug')
    return CropSettings.from_env().replace(
        margin=int(margin) if margin not in (None, '') else None,
        threshold=float(threshold) if threshold not in (None, '') else None,
        bounds_strategy=form.get('strategy') or None,
        foreground_convention=form.get('foreground') or None,
        write_debug_image=debug.lower() in ('1', 'true', 'yes', 'on') if debug else None,
    )


@app.route('/api/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


@app.route('/api/crop', methods=['POST'])
def crop_image():
    """Crop an uploaded image to its detected content."""
    if 'image' not in request.files:
        return jsonify({'success': False, 'message': 'No image provided'}), 400

    file = request.files['image']
    if file.filename == '':
        return jsonify({'success': False, 'message': 'No file selected'}), 400
    if not allowed_file(file.filename):
        return jsonify({'success': False, 'message': f'Unsupported file type: {file.filename}'}), 400

    try:
        settings = settings_from_form(request.form)
    except ValueError as e:
        return jsonify({'success': False, 'message': f'Invalid parameters: {e}'}), 400

    # Save uploaded file temporarily
    upload_folder = Path(app.config['UPLOAD_FOLDER'])
    upload_folder.mkdir(parents=True, exist_ok=True)
    filename = secure_filename(file.filename)
    temp_path = upload_folder / f"crop_{uuid.uuid4().hex}_{filename}"
    file.save(str(temp_path))

    try:
        source = image_service.load(temp_path)
        logger.info(f"Image loaded: {source.width}x{source.height}")

        binary, bounds = locate_content(source, settings)
        response = {'success': True, 'bounds': bounds.as_dict()}
        if settings.write_debug_image:
            response['debug_image'] = image_service.to_base64_png(image_service.draw_bounds(binary, bounds))

        crop_bounds, cropped = crop_content(source, binary, bounds, settings)
        response.update(
            margin_bounds=crop_bounds.as_dict(),
            width=cropped.width,
            height=cropped.height,
            image=image_service.to_base64_png(cropped),
        )
        return jsonify(response)

    except (DecodeError, DimensionError) as e:
        return jsonify({'success': False, 'message': f'Unreadable image: {e}'}), 400
    except DegenerateBoundsError as e:
        payload = {'success': False, 'message': f'Nothing to crop: {e}'}
        if e.bounds is not None:
            payload['bounds'] = e.bounds.as_dict()
        return jsonify(payload), 400
    except Exception as e:
        logger.error(f"Crop error: {e}")
        return jsonify({'success': False, 'message': 'Error processing image'}), 500
    finally:
        # Clean up temp file
        if temp_path.exists():
            temp_path.unlink()


if __name__ == '__main__':
    port = int(os.getenv("API_PORT", "5000"))
    logger.info(f"Starting Scan Autocrop API on port {port}")
    app.run(host='0.0.0.0', port=port, debug=False)
