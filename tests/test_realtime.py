"""
Realtime broadcaster and the /ws endpoint
"""
import asyncio

from app.realtime import broadcaster
from app.realtime.broadcaster import Broadcaster


def next_events(ws, count):
    return [ws.receive_json() for _ in range(count)]


def assert_nothing_pending(ws):
    """A ping is answered after anything already queued, so pong must come next"""
    ws.send_json({"action": "ping"})
    assert ws.receive_json() == {"event": "pong", "data": None}


class TestWebSocket:

    def test_reservation_fans_out_in_order(self, client, product_factory):
        pid = product_factory(stock=10, threshold=1)

        with client.websocket_connect("/ws") as ws:
            rid = client.post("/api/reservations", json={"product_id": pid}).json()["id"]

            messages = next_events(ws, 5)

        assert [m["event"] for m in messages] == [
            "reservation:created",
            "reservations:updated",
            "inventory:updated",
            "product:stock-changed",
            "sales:updated",
        ]
        assert messages[0]["data"]["id"] == rid
        assert messages[3]["data"] == {"id": pid, "newStock": 9}
        assert "room" not in messages[0]

    def test_every_client_receives_events(self, client, product_factory):
        pid = product_factory(stock=20)

        with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
            client.post("/api/sales/orders", json={"product_id": pid, "quantity": 1})

            for ws in (first, second):
                assert [m["event"] for m in next_events(ws, 3)] == [
                    "sales:updated", "inventory:updated", "product:stock-changed",
                ]

    def test_low_stock_goes_to_admin_room_only(self, client, product_factory):
        pid = product_factory(stock=6, threshold=5)

        with client.websocket_connect("/ws") as admin, client.websocket_connect("/ws") as shopper:
            admin.send_json({"action": "join-room", "room": "admin"})
            assert admin.receive_json() == {"event": "room:joined", "data": {"room": "admin"}}

            client.post(f"/api/products/{pid}/decrease-stock", json={"quantity": 1})

            admin_events = next_events(admin, 3)
            shopper_events = next_events(shopper, 2)
            assert_nothing_pending(shopper)

        assert admin_events[2]["event"] == "inventory:low-stock"
        assert admin_events[2]["room"] == "admin"
        assert admin_events[2]["data"]["stock"] == 5
        assert [m["event"] for m in shopper_events] == ["inventory:updated", "product:stock-changed"]

    def test_leave_room(self, client, product_factory):
        pid = product_factory(stock=1, threshold=5)

        with client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "join-room", "room": "admin"})
            ws.receive_json()
            ws.send_json({"action": "leave-room", "room": "admin"})
            assert ws.receive_json() == {"event": "room:left", "data": {"room": "admin"}}

            client.post(f"/api/products/{pid}/decrease-stock", json={"quantity": 1})

            assert [m["event"] for m in next_events(ws, 2)] == ["inventory:updated", "product:stock-changed"]
            assert_nothing_pending(ws)

    def test_failed_operation_publishes_nothing(self, client, product_factory):
        pid = product_factory(stock=0)

        with client.websocket_connect("/ws") as ws:
            assert client.post("/api/reservations", json={"product_id": pid}).status_code == 409
            assert client.post("/api/sales/orders", json={"product_id": pid}).status_code == 409

            assert_nothing_pending(ws)

    def test_malformed_messages_are_ignored(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            ws.send_json(["join-room"])
            ws.send_json({"action": "join-room"})

            assert_nothing_pending(ws)

    def test_disconnect_unregisters_client(self, client):
        with client.websocket_connect("/ws") as ws:
            assert_nothing_pending(ws)
            assert broadcaster.client_count == 1

        assert broadcaster.client_count == 0


class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail
        self.close_code = None

    async def accept(self):
        pass

    async def close(self, code=1000):
        self.close_code = code

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


class TestBroadcaster:

    def test_listeners_see_every_publish(self):
        hub = Broadcaster()
        seen = []
        hub.add_listener(lambda event, data, room: seen.append((event, data, room)))

        hub.publish("inventory:updated")
        hub.publish("inventory:low-stock", {"id": 3}, room="admin")

        assert seen == [("inventory:updated", None, None), ("inventory:low-stock", {"id": 3}, "admin")]

    def test_failing_listener_does_not_stop_others(self):
        hub = Broadcaster()
        seen = []

        def broken(event, data, room):
            raise ValueError("boom")

        hub.add_listener(broken)
        hub.add_listener(lambda event, data, room: seen.append(event))

        hub.publish("sales:updated")

        assert seen == ["sales:updated"]

    def test_remove_listener(self):
        hub = Broadcaster()
        seen = []

        def listener(event, data, room):
            seen.append(event)

        hub.add_listener(listener)
        hub.remove_listener(listener)
        hub.remove_listener(listener)
        hub.publish("sales:updated")

        assert seen == []

    def test_room_scoping_and_order(self):
        async def scenario():
            hub = Broadcaster()
            lobby, staff = FakeSocket(), FakeSocket()
            a = await hub.connect(lobby)
            b = await hub.connect(staff)
            hub.join(b, "admin")
            pumps = [asyncio.create_task(c.pump()) for c in (a, b)]

            for n in range(3):
                hub.publish("product:stock-changed", {"id": 1, "newStock": n})
            hub.publish("inventory:low-stock", {"id": 1}, room="admin")
            await asyncio.sleep(0.05)

            for task in pumps:
                task.cancel()
            return lobby.sent, staff.sent

        lobby_sent, staff_sent = asyncio.run(scenario())

        assert [m["data"]["newStock"] for m in lobby_sent] == [0, 1, 2]
        assert [m["event"] for m in staff_sent] == ["product:stock-changed"] * 3 + ["inventory:low-stock"]
        assert staff_sent[-1]["room"] == "admin"

    def test_dead_client_is_dropped(self):
        async def scenario():
            hub = Broadcaster()
            client = await hub.connect(FakeSocket(fail=True))
            pump = asyncio.create_task(client.pump())
            hub.publish("sales:updated")
            await asyncio.wait_for(pump, timeout=1)
            return client

        client = asyncio.run(scenario())

        assert client.closed is True
        client.enqueue({"event": "ignored"})

    def test_client_that_stops_reading_is_dropped(self):
        async def scenario():
            hub = Broadcaster(max_pending=2)
            socket = FakeSocket()
            # No pump running: nothing is ever drained
            client = await hub.connect(socket)
            for n in range(3):
                hub.publish("product:stock-changed", {"id": 1, "newStock": n})
            await asyncio.sleep(0.05)
            hub.publish("inventory:updated")
            return hub, client, socket

        hub, client, socket = asyncio.run(scenario())

        assert client.closed is True
        assert socket.close_code == 1013
        assert client.queue.qsize() == 2
        assert hub.client_count == 0
