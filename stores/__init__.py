"""
資料存取層

每個 store 只負責一張表的存取：
- room_store：房間（依 id、依代碼查詢）
- participant_store：參加者（依 id、依房間 + 名字查詢）
- pairing_store：抽籤結果（依房間查詢、整組替換）

所有函式都接收呼叫者的 Session，只 flush 不 commit，
transaction 的邊界由 core 的 Manager 決定。
"""
