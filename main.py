"""
Wordle Duel Server - Main Entry Point

This is the main entry point for the Wordle Duel server.
It initializes all services and starts the Flask-SocketIO application.
"""

from wordle_duel import create_app
from wordle_duel.config import Config, validate_word_list_integrity
from wordle_duel.services.duel_service import initialize_duel_service
from wordle_duel.utils.game_logger import game_logger


def main():
    try:
        print("Initializing Wordle Duel Server...")
        
        validate_word_list_integrity()
        print("✓ Word lists validated")
        
        duel_service = initialize_duel_service(Config)
        print(f"✓ Duel service initialized (sync backend: {Config.SYNC_BACKEND})")
        
        app, socketio = create_app(Config)
        print("✓ Flask application created successfully")
        
        game_logger.logger.info("Wordle Duel Server starting")
        
        print(f"\nStarting Wordle Duel Server on {Config.HOST}:{Config.PORT}")
        print(f"Debug mode: {Config.DEBUG}")
        print(f"Rooms: {len(duel_service.lobby.rooms)}")
        print("=" * 50)
        
        socketio.run(app, host=Config.HOST, port=Config.PORT, debug=Config.DEBUG)
        
    except KeyboardInterrupt:
        print("\nServer shutting down...")
        game_logger.logger.info("Wordle Duel Server shutting down (KeyboardInterrupt)")
    except Exception as e:
        print(f"Error starting server: {e}")
        game_logger.logger.error(f"Error starting server: {e}")
        raise


if __name__ == '__main__':
    main()
