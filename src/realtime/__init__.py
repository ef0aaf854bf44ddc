"""Call brokering between end clients and the realtime inference API.

Two triggers establish a call: a browser SDP offer (``/rtc``) and a signed
SIP webhook (``/sip``). Once the upstream API confirms the call, an observer
channel is attached in the background:
trigger -> upstream create/accept -> observer trigger -> control websocket.
"""
