from spread_monitor.main import main

main()
