import os
import subprocess
import sys

if __name__ == "__main__":
    port = os.getenv("PORT", "8000")
    # PDF rendering waits on a browser; keep the worker timeout above PDF_RENDER_TIMEOUT
    timeout = str(int(float(os.getenv("PDF_RENDER_TIMEOUT", "60"))) + 30)

    cmd = [
        "gunicorn",
        "wsgi:application",
        "-k", "gthread",
        "--workers", os.getenv("WEB_CONCURRENCY", "2"),
        "--threads", os.getenv("GUNICORN_THREADS", "4"),
        "--timeout", timeout,
        f"--bind=0.0.0.0:{port}"
    ]

    try:
        print(f"Starting Gunicorn on port {port} ...")
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        print(f"Error running gunicorn: {e}")
        sys.exit(1)
