import sys
import http.client
import os

# container health probe, stdlib only so it runs before the venv is warm
PORT = int(os.getenv("PORT", 8000))
HOST = "localhost"
PATH = f"{os.getenv('API_PREFIX', '/api')}/health"

try:
    conn = http.client.HTTPConnection(HOST, PORT, timeout=5)
    conn.request("GET", PATH)
    response = conn.getresponse()

    if 200 <= response.status < 300:
        print(f"Health check passed with status: {response.status}")
        sys.exit(0)
    else:
        print(f"Health check failed with status: {response.status}")
        sys.exit(1)

except (OSError, http.client.HTTPException) as e:
    print(f"Health check failed with error: {e}")
    sys.exit(1)
finally:
    if 'conn' in locals():
        conn.close()
