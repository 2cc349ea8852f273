import os

from officedesk_app import create_app

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))

    print("Starting OfficeDesk API...")
    print("=" * 60)
    print(f"Local Access:    http://127.0.0.1:{port}")
    print("=" * 60)

    app.run(
        host=os.environ.get("HOST", "127.0.0.1"),
        port=port,
        debug=app.config.get("DEBUG", False),
        threaded=True    # Enable threading for concurrent requests
    )
