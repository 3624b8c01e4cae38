from environs import Env

from app.app import create_app

env = Env()

app = create_app()


if __name__ == "__main__":
    app.run(host=env.str("HOST", "0.0.0.0"), port=env.int("PORT", 5000))
