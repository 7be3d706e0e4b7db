from dotenv import load_dotenv

load_dotenv()

from database import create_standalone_connection, setup_database

print("Initializing database...")
conn = create_standalone_connection()
try:
    setup_database(conn)
finally:
    conn.close()
print("Database initialization complete.")
