from blinkit_agent.worker.bridge import main

main()
