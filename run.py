#!/usr/bin/env python3
"""
Run script for videoWiper.
This is the main entry point for running the application.
"""

from app import app, Config, get_relay, shutdown_relay


def main():
    # Print startup info
    print("\n" + "=" * 60)
    print("📼 videoWiper - Discord media relay")
    print("=" * 60)

    # Validate configuration
    if not Config.validate():
        print("\n⚠️  WARNING: Discord bot token not configured!")
        print("Set the following environment variables:")
        print("  - DISCORD_TOKEN")
        print("  - CHANNEL_ID (optional, can be set via /api/config)")
        print("\nThe HTTP API will start, but Discord routes answer 503.")
        print("=" * 60 + "\n")
    else:
        print("✅ Discord bot token configured")

    # Log the bot in before serving requests
    get_relay()

    print(f"\n🚀 videoWiper server starting on http://{Config.HOST}:{Config.PORT}")
    print(f"📝 Debug mode: {Config.DEBUG}")
    print("Press Ctrl+C to stop\n")

    try:
        # The reloader would start a second bot connection
        app.run(
            host=Config.HOST,
            port=Config.PORT,
            debug=Config.DEBUG,
            use_reloader=False
        )
    finally:
        print("\n👋 Shutting down videoWiper...")
        shutdown_relay()


if __name__ == '__main__':
    main()
