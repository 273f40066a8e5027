"""
Question image intake.

Uploaded files are spooled to a temporary file, read into memory for the
database blob and the temporary file is removed whatever happens.
"""
import os
import re
import tempfile
from typing import Dict, Tuple

from flask import current_app
from werkzeug.datastructures import FileStorage, MultiDict
from werkzeug.utils import secure_filename

from examdesk_app.core.error_handlers import ValidationError

EXPLICIT_FIELD = re.compile(r'^questionImage_(\d+)$')
POSITIONAL_FIELD = 'questionImages'

_MIME_BY_EXTENSION = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
}


class ImageService:

    @staticmethod
    def extension_of(filename: str) -> str:
        return filename.rsplit('.', 1)[1].lower() if filename and '.' in filename else ''

    @classmethod
    def validate(cls, upload: FileStorage) -> str:
        """Return the content type to store for `upload`, or raise ValidationError."""
        allowed = current_app.config.get('ALLOWED_IMAGE_EXTENSIONS', {'jpeg', 'jpg', 'png', 'gif'})
        extension = cls.extension_of(upload.filename or '')
        mimetype = (upload.mimetype or '').lower()
        untyped = mimetype in ('', 'application/octet-stream')
        if extension not in allowed or not (mimetype.startswith('image/') or untyped):
            raise ValidationError('Error: Images only!', errors={'image': [upload.filename or '<unnamed>']})
        if mimetype.startswith('image/'):
            return mimetype
        return _MIME_BY_EXTENSION.get(extension, 'application/octet-stream')

    @staticmethod
    def bind_to_questions(files: MultiDict, question_count: int) -> Dict[int, FileStorage]:
        """
        Map uploaded files to question positions.

        `questionImage_<i>` fields bind explicitly to question i. Without any
        explicit field, the ordered `questionImages` list binds file i to
        question i.
        """
        bound: Dict[int, FileStorage] = {}
        for field_name, upload in files.items(multi=True):
            match = EXPLICIT_FIELD.match(field_name)
            if not match or not upload or not upload.filename:
                continue
            index = int(match.group(1))
            if index >= question_count:
                raise ValidationError(
                    f'Image supplied for question {index} but the quiz has {question_count} question(s)'
                )
            bound[index] = upload

        if bound:
            return bound

        positional = [upload for upload in files.getlist(POSITIONAL_FIELD) if upload and upload.filename]
        if len(positional) > question_count:
            raise ValidationError('More images than questions were uploaded')
        return dict(enumerate(positional))

    @classmethod
    def persist(cls, upload: FileStorage) -> Tuple[bytes, str]:
        """Read an upload through a temporary file and return (blob, content_type)."""
        content_type = cls.validate(upload)

        temp_dir = current_app.config.get('UPLOAD_TEMP_FOLDER') or None
        if temp_dir:
            os.makedirs(temp_dir, exist_ok=True)
        suffix = '-' + (secure_filename(upload.filename or '') or 'upload')
        fd, temp_path = tempfile.mkstemp(suffix=suffix, dir=temp_dir)
        try:
            with os.fdopen(fd, 'wb') as handle:
                upload.save(handle)
            with open(temp_path, 'rb') as handle:
                data = handle.read()
        finally:
            try:
                os.remove(temp_path)
            except FileNotFoundError:
                pass

        if not data:
            raise ValidationError('Uploaded image is empty', errors={'image': [upload.filename]})
        return data, content_type
