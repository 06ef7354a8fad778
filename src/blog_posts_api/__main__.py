"""Run the service with ``python -m blog_posts_api``."""

from blog_posts_api.main import run

run()
