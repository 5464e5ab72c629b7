import daemon
import uvicorn

from discovery_agent import agent
from discovery_agent.constants import API_HOST, API_PORT

with daemon.DaemonContext():
    uvicorn.run(agent.app, host=API_HOST, port=API_PORT)
