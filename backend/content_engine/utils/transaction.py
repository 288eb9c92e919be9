from contextlib import contextmanager

from flask import current_app

from content_engine.extensions import db


@contextmanager
def transactional(operation: str = "write"):
    """
    One unit of work: flush and commit on success, roll back on any error.
    Flushing first makes constraint violations surface inside the block.
    """
    try:
        yield db.session
        db.session.flush()
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.warning("transaction rolled back operation=%s", operation)
        raise
