import logging
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from config import Config
from flask_migrate import Migrate

# 1. Inisialisasi ekstensi di scope global
db = SQLAlchemy()
migrate = Migrate()

def create_app(config_class=Config):
    """Factory function untuk membuat instance aplikasi Flask."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # 2. Inisialisasi ekstensi dengan aplikasi
    db.init_app(app)
    migrate.init_app(app, db)

    CORS(app, resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', [])}})

    # Setup Logging
    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'), format='%(asctime)s - [%(levelname)s] - %(message)s')

    # 3. Kelompokkan semua registrasi blueprint di satu tempat
    with app.app_context():
        from . import models  # noqa: F401
        from .transaksi.routes import transaksi_bp
        from .katalog.routes import katalog_bp
        from .profil_toko.routes import profil_toko_bp
        from .dokumen.routes import dokumen_bp
        from .laporan.routes import laporan_bp

        app.register_blueprint(transaksi_bp)
        app.register_blueprint(katalog_bp)
        app.register_blueprint(profil_toko_bp)
        app.register_blueprint(dokumen_bp)
        app.register_blueprint(laporan_bp)

        app.logger.info("Semua blueprints telah diregistrasi.")

    # 4. Error domain -> respons JSON
    from .errors import DokumenPajakError

    @app.errorhandler(DokumenPajakError)
    def handle_domain_error(error):
        db.session.rollback()
        log = app.logger.warning if error.status_code < 500 else app.logger.error
        log(f"{error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    # Skema dikelola Flask-Migrate (`flask db upgrade`), bukan db.create_all().
    return app
