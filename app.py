import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from config import Config
from extensions import db, migrate, jwt
from utils.errors import VSLAError

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # ✅ Enable CORS with credentials so cookies work
    CORS(app, supports_credentials=True)

    # ✅ Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # models must be imported before create_all / migrations see them
    from audit import models as _audit_models  # noqa: F401
    from finance import models as _finance_models  # noqa: F401
    from groups import models as _group_models  # noqa: F401
    from meetings import models as _meeting_models  # noqa: F401
    from members import models as _member_models  # noqa: F401
    from notifications import models as _notification_models  # noqa: F401
    from users import models as _user_models  # noqa: F401

    # Blueprints
    from audit.routes import audit_bp
    from finance.routes import finance_bp
    from groups.routes import groups_bp
    from meetings.routes import meetings_bp
    from members.routes import members_bp
    from notifications.routes import notifications_bp
    from reports.routes import reports_bp
    from users.routes import users_bp

    # ✅ Register Blueprints
    for bp in (users_bp, groups_bp, members_bp, finance_bp, meetings_bp,
               reports_bp, notifications_bp, audit_bp):
        app.register_blueprint(bp, url_prefix="/api")

    register_error_handlers(app)
    start_scheduler(app)

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok"}), 200

    return app


def register_error_handlers(app):
    @app.errorhandler(VSLAError)
    def domain_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def validation_error(error):
        db.session.rollback()
        details = error.errors(include_url=False, include_context=False)
        return jsonify({"error": "Invalid request data", "details": details}), 400

    # ✅ Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Route not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description}), error.code
        db.session.rollback()
        logger.exception("Unhandled error: %s", error)
        return jsonify({"error": "Internal server error"}), 500


def start_scheduler(app):
    """Meeting reminders and overdue-loan interest, in the serving process only."""
    if not app.config.get("ENABLE_SCHEDULER") or app.config.get("TESTING"):
        return
    # ⚠️ Prevent running during CLI commands (db migrate, shell, etc.) and imports;
    # under gunicorn set SCHEDULER_STANDALONE instead
    if os.environ.get("WERKZEUG_RUN_MAIN") != "true" and not app.config.get("SCHEDULER_STANDALONE"):
        return

    from apscheduler.schedulers.background import BackgroundScheduler
    from finance.loan_logic import refresh_overdue_loans
    from utils.reminder_service import send_meeting_reminders

    def _with_app(job):
        def run():
            with app.app_context():
                try:
                    job()
                except Exception:
                    db.session.rollback()
                    logger.exception("Scheduled job %s failed", job.__name__)
        return run

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        _with_app(send_meeting_reminders),
        'interval',
        minutes=app.config["MEETING_REMINDER_INTERVAL_MINUTES"],
        id='meeting_reminders',
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        misfire_grace_time=60
    )
    scheduler.add_job(
        _with_app(refresh_overdue_loans),
        'interval',
        minutes=app.config["OVERDUE_REFRESH_INTERVAL_MINUTES"],
        id='overdue_loans',
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        misfire_grace_time=300
    )
    scheduler.start()
    app.extensions["scheduler"] = scheduler
    logger.info("Background scheduler started (reminders every %s min, overdue refresh every %s min)",
                app.config["MEETING_REMINDER_INTERVAL_MINUTES"], app.config["OVERDUE_REFRESH_INTERVAL_MINUTES"])


app = create_app()

if __name__ == '__main__':
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 10000)), debug=True)
