"""
Development server for the Galactic Uprising API.
Serves uprising.api.main:app with uvicorn. Host and port come from uprising.config
(UPRISING_HOST / UPRISING_PORT).
"""

import uvicorn

from uprising.config import API_HOST, API_PORT

if __name__ == "__main__":
    print(f"Serving at http://{API_HOST}:{API_PORT}")
    print(f"API docs at http://{API_HOST}:{API_PORT}/docs")
    print("Press Ctrl+C to stop")
    uvicorn.run("uprising.api.main:app", host=API_HOST, port=API_PORT, reload=False)
