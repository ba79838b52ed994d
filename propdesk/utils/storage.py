import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

ALLOWED_EXTENSIONS = {
    'pdf', 'doc', 'docx', 'txt', 'png', 'jpg', 'jpeg', 'gif', 'webp', 'mp4', 'mov',
}


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def upload_dir(subdir):
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], subdir)
    os.makedirs(path, exist_ok=True)
    return path


def save_upload(file_storage, subdir):
    """Persist an uploaded file under a random name; returns its metadata."""
    original = secure_filename(file_storage.filename or '')
    if not original or not allowed_file(original):
        raise ValueError(f"File type not allowed: {file_storage.filename!r}")
    extension = original.rsplit('.', 1)[1].lower()
    stored = f"{uuid.uuid4().hex}.{extension}"
    path = os.path.join(upload_dir(subdir), stored)
    file_storage.save(path)
    return {
        'stored_name': stored,
        'original_name': original,
        'mime_type': file_storage.mimetype,
        'size': os.path.getsize(path),
    }


def delete_upload(subdir, stored_name):
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], subdir, stored_name)
    if os.path.exists(path):
        os.remove(path)
