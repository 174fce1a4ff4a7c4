"""
Lobby Service

Manages the fixed duel rooms: membership, and the secret shared by the two
players of a room.
"""

from typing import Dict, Optional

from .dictionary_service import WordDictionary


class LobbyService:
    """
    Simplified lobby manager for duel rooms.
    Uses simple in-memory state; each room holds at most two players.
    """
    
    def __init__(self, dictionary: WordDictionary, room_count: int = 3):
        self.dictionary = dictionary
        self.rooms = {
            room_id: {'id': room_id, 'name': f'Room {room_id}', 'code': f'ROOM{room_id}', 'players': [], 'secret': None}
            for room_id in range(1, room_count + 1)
        }
        # Track which room each user is in
        self.user_to_room = {}  # user_id -> room_id
    
    def get_lobby_state(self):
        """Get current state of all rooms."""
        rooms = []
        for room_id, room in self.rooms.items():
            rooms.append({
                'id': room_id,
                'name': room['name'],
                'players': room['players'].copy(),
                'max_players': 2
            })
        return {'success': True, 'rooms': rooms}
    
    def join_room(self, user_id, username, room_id):
        """Join a user to a room. The first player in an empty room fixes its secret."""
        if room_id not in self.rooms:
            return {'success': False, 'error': 'Room not found'}
        
        room = self.rooms[room_id]
        
        if any(p['id'] == user_id for p in room['players']):
            return {'success': False, 'error': 'Already in this room'}
        
        if len(room['players']) >= 2:
            return {'success': False, 'error': 'Room is full'}
        
        if any(p['username'] == username for p in room['players']):
            return {'success': False, 'error': 'Player name already taken in this room'}
        
        # Remove from current room if in one
        self.leave_room(user_id)
        
        if not room['players']:
            room['secret'] = self.dictionary.pick_random_secret()
        
        room['players'].append({'id': user_id, 'username': username})
        self.user_to_room[user_id] = room_id
        
        return {
            'success': True,
            'room_full': len(room['players']) == 2,
            'room_code': room['code'],
            'secret': room['secret'],
            'players': room['players'].copy(),
            'message': f'Joined {room["name"]}'
        }
    
    def leave_room(self, user_id):
        """Remove user from their current room. An emptied room forgets its secret."""
        if user_id not in self.user_to_room:
            return {'success': False, 'error': 'Not in any room'}
        
        room_id = self.user_to_room.pop(user_id)
        room = self.rooms[room_id]
        room['players'] = [p for p in room['players'] if p['id'] != user_id]
        if not room['players']:
            room['secret'] = None
        
        return {
            'success': True,
            'room_code': room['code'],
            'room_empty': not room['players'],
            'message': f'Left {room["name"]}'
        }
    
    def refresh_secret(self, room_id) -> Optional[str]:
        """Pick a new secret for an occupied room so the next pairing cannot reuse the old answer."""
        room = self.rooms.get(room_id)
        if room is None or not room['players']:
            return None
        room['secret'] = self.dictionary.pick_random_secret()
        return room['secret']

    def get_user_room(self, user_id) -> Optional[Dict]:
        """Get the room a user is in."""
        if user_id in self.user_to_room:
            return self.rooms[self.user_to_room[user_id]]
        return None
