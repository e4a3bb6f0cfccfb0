# Inbound message kinds (connection -> relay)
JOIN = "join"
OFFER = "offer"
ANSWER = "answer"
ICE_CANDIDATE = "ice-candidate"

RELAYED_KINDS = (OFFER, ANSWER, ICE_CANDIDATE)

# Outbound message kinds (relay -> connection)
CREATED = "created"
JOINED = "joined"
FULL = "full"
READY = "ready"
PEER_LEFT = "peer-left"
ERROR = "error"
