import logging

from flask import Flask, jsonify

from config.config import Config
from extensions import db, login_manager, migrate

# Route Imports
from routes.auth_routes import auth_bp
from routes.admin_routes import admin_bp
from routes.student_routes import students_bp
from routes.attendance_routes import attendance_bp
from routes.grade_routes import grades_bp
from routes.fee_routes import fees_bp
from routes.report_routes import reports_bp

from models import User
from services.exceptions import SchoolError


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        user = db.session.get(User, int(user_id))
        if user is None or user.is_active is False:
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Login required"}), 401

    @app.errorhandler(SchoolError)
    def handle_school_error(exc):
        return jsonify(exc.to_dict()), exc.http_status

    # Register Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(students_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(grades_bp)
    app.register_blueprint(fees_bp)
    app.register_blueprint(reports_bp)

    @app.cli.command("init-db")
    def init_db():
        db.create_all()
        print("Initialized the database.")

    @app.cli.command("seed")
    def seed():
        from utils.seed_data import run_seed
        run_seed()

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=True)
