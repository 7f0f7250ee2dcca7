"""Row models and SQLite queries for users, networks, frequencies, members and messages."""