"""
服務層

這個 package 包含純計算邏輯，不負責狀態轉換：
- MatchingService：抽籤（derangement）邏輯
- NamingService：房間代碼與名字整理
- StateService：短輪詢用的 state_version
- GiftAdvisorService：Gemini 禮物建議（選用）
"""
