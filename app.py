import logging

from flask import Flask, jsonify

from zkclear import __version__
from zkclear.config import RollupConfig
from zkclear.rollup.node import RollupNode

from rollup_routes import rollup_bp, init_rollup_bp

logger = logging.getLogger(__name__)


def create_app(config=None, node=None):
    if node is None:
        config = config if config is not None else RollupConfig.from_env()
        node = RollupNode.from_config(config)

    logging.basicConfig(
        level=node.config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = Flask(__name__)
    app.config["ROLLUP_NODE"] = node

    init_rollup_bp(node)
    app.register_blueprint(rollup_bp)

    @app.route("/")
    def index():
        return jsonify({"service": "zkclear", "version": __version__})

    logger.info("zkclear %s serving /rollup", __version__)
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=False)
